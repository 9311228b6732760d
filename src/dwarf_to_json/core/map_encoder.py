#!/usr/bin/env python3

"""Serialize location records and the scope forest as a source map."""

import json
from typing import Any

from ..infrastructure.logging import get_logger
from .errors import OutputFormatError
from .models import (
    AttrValue,
    BoolValue,
    ExpressionValue,
    IgnoredValue,
    IntValue,
    LocationInfo,
    LocationListValue,
    RangesValue,
    ScopeArena,
    StringValue,
    UidRefValue,
    UidValue,
    UnknownValue,
)
from .vlq import encode_segment

logger = get_logger(__name__)

SOURCE_MAP_VERSION = 3


def encode_mappings(info: LocationInfo, code_section_offset: int) -> str:
    """
    Encode location records as a single generated line of segments.

    WebAssembly has no generated lines, so every record is one segment of the
    same line and its module byte offset plays the role of the column.
    Records without line information are skipped.
    """
    segments = []
    last_address = last_source_id = last_line = last_column = 0

    for loc in info.locations:
        if loc.line == 0:
            continue
        address = loc.address + code_section_offset
        line = loc.line - 1
        column = loc.column - 1 if loc.column != 0 else 0
        segments.append(
            encode_segment(
                (
                    address - last_address,
                    loc.source_id - last_source_id,
                    line - last_line,
                    column - last_column,
                )
            )
        )
        last_address = address
        last_source_id = loc.source_id
        last_line = line
        last_column = column

    return ",".join(segments)


def _expr_hex(expr: bytes) -> str:
    return expr.hex().upper()


def convert_attr_value(value: AttrValue) -> Any:
    """Render one attribute value as a JSON-compatible object."""
    if isinstance(value, (IntValue, BoolValue, StringValue)):
        return value.value
    if isinstance(value, RangesValue):
        return [[start, end] for start, end in value.ranges]
    if isinstance(value, ExpressionValue):
        return _expr_hex(value.expr)
    if isinstance(value, LocationListValue):
        return [
            {"range": [start, end], "expr": _expr_hex(expr)}
            for start, end, expr in value.entries
        ]
    if isinstance(value, UidValue):
        return value.uid
    if isinstance(value, UidRefValue):
        ref: dict[str, Any] = {"uid": value.uid}
        if value.name is not None:
            ref["name"] = value.name
        return ref
    if isinstance(value, IgnoredValue):
        return "<ignored>"
    if isinstance(value, UnknownValue):
        return "???"
    raise OutputFormatError(f"Unsupported attribute value: {value!r}")


def convert_scopes(arena: ScopeArena, indices: list[int] | None = None) -> list[dict[str, Any]]:
    """Render the subtrees rooted at ``indices`` (default: the forest roots)."""
    result = []
    for index in arena.roots if indices is None else indices:
        entry = arena[index]
        obj: dict[str, Any] = {"tag": entry.tag}
        for name, value in entry.attrs.items():
            obj[name] = convert_attr_value(value)
        if entry.children:
            obj["children"] = convert_scopes(arena, entry.children)
        result.append(obj)
    return result


def convert_debug_info_to_json(
    info: LocationInfo,
    scopes: ScopeArena | None,
    code_section_offset: int,
) -> bytes:
    """
    Assemble the source map document.

    Args:
        info: Sources and sorted location records
        scopes: Scope forest, or None to omit ``x-scopes``
        code_section_offset: Module offset of the code section body

    Returns:
        Pretty-printed UTF-8 JSON

    Raises:
        OutputFormatError: If the document cannot be serialized
    """
    root: dict[str, Any] = {
        "version": SOURCE_MAP_VERSION,
        "sources": list(info.sources),
        "names": [],
        "mappings": encode_mappings(info, code_section_offset),
    }
    if scopes is not None:
        root["x-scopes"] = {
            "debug_info": convert_scopes(scopes),
            "code_section_offset": code_section_offset,
        }

    try:
        text = json.dumps(root, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise OutputFormatError(f"Failed to serialize source map: {e}") from e

    logger.debug(f"Source map: {len(info.sources)} sources, {len(text)} characters")
    return text.encode("utf-8")
