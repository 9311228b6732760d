#!/usr/bin/env python3

"""Conversion pipeline: WebAssembly module bytes to source map JSON."""

from ..infrastructure.logging import get_logger, log_timing
from .dwarf_reader import load_dwarf_info
from .line_table import LineTableBuilder
from .map_encoder import convert_debug_info_to_json
from .scope_tree import ScopeTreeBuilder
from .source_registry import SourceRegistry
from .source_urls import parse_url_prefixes
from .wasm_sections import URL_PREFIXES_SECTION, read_debug_sections

logger = get_logger(__name__)


@log_timing
def convert(module_bytes: bytes | memoryview, include_scopes: bool = False) -> bytes:
    """
    Convert the DWARF data of a WebAssembly module to a source map.

    Args:
        module_bytes: Whole WebAssembly module
        include_scopes: Also export the DWARF scope tree as ``x-scopes``

    Returns:
        Source map JSON as UTF-8 bytes

    Raises:
        DwarfToJsonError: Any failure; no partial output is produced
    """
    sections = read_debug_sections(module_bytes)
    dwarf_info = load_dwarf_info(sections)

    prefixes = []
    prefix_section = sections.get(URL_PREFIXES_SECTION)
    if prefix_section is not None:
        prefixes = parse_url_prefixes(prefix_section)

    registry = SourceRegistry(prefixes)
    info = LineTableBuilder(dwarf_info, registry).build()
    logger.debug(f"Collected {len(info.locations)} locations from {len(registry)} sources")

    scopes = None
    if include_scopes:
        scopes = ScopeTreeBuilder(dwarf_info, registry).build()

    # Scopes may have registered more sources after the line table
    info.sources = registry.sources

    return convert_debug_info_to_json(info, scopes, sections.code_section_offset)
