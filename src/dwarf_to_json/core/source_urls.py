#!/usr/bin/env python3

"""Parse the ``sourceURLPrefixes`` section and rewrite source paths with it."""

import json

from ..infrastructure.logging import get_logger
from .byte_cursor import ByteCursor

logger = get_logger(__name__)


def parse_url_prefixes(section_body: bytes | memoryview) -> list[tuple[str, str]]:
    """
    Parse the prefix table of a ``sourceURLPrefixes`` section.

    The body holds one length-prefixed string containing a JSON array of
    ``[prefix, replacement]`` pairs. Anything that is not such an array
    yields an empty table.

    Raises:
        WasmFormatError: If the length-prefixed string itself is malformed
    """
    text = ByteCursor(section_body).str()
    try:
        pairs = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring malformed sourceURLPrefixes section: {e}")
        return []

    if not isinstance(pairs, list) or not all(
        isinstance(pair, list) and len(pair) == 2 and all(isinstance(s, str) for s in pair)
        for pair in pairs
    ):
        logger.warning("Ignoring sourceURLPrefixes section: expected [[prefix, replacement], ...]")
        return []

    return [(prefix, replacement) for prefix, replacement in pairs]


def rewrite_url(url: str, prefixes: list[tuple[str, str]]) -> str:
    """Replace the first matching prefix of ``url``."""
    for prefix, replacement in prefixes:
        if url.startswith(prefix):
            return replacement + url[len(prefix) :]
    return url
