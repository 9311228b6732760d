#!/usr/bin/env python3

"""Wrap DWARF sections recovered from a WebAssembly module for pyelftools.

pyelftools normally obtains its sections from an ELF container. WebAssembly
carries them as custom sections instead, so the section bodies are exposed as
in-memory streams and handed to ``DWARFInfo`` directly.
"""

import io
from collections.abc import Iterator

from elftools.common.exceptions import DWARFError, ELFError
from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.dwarfinfo import DebugSectionDescriptor, DWARFInfo, DwarfConfig

from ..infrastructure.logging import get_logger
from .errors import DwarfFormatError, MissingSectionError
from .wasm_sections import ModuleSections

logger = get_logger(__name__)

# Sections without which no line table can be produced
REQUIRED_SECTIONS = (".debug_str", ".debug_abbrev", ".debug_info", ".debug_line")

# wasm32: little endian, 32-bit addresses
WASM_DWARF_CONFIG = DwarfConfig(
    little_endian=True,
    machine_arch="wasm",
    default_address_size=4,
)

# Errors pyelftools raises on malformed input. Bad abbreviation codes and
# out-of-range table lookups surface as KeyError/IndexError.
READER_ERRORS = (ELFError, DWARFError, KeyError, IndexError)


def _descriptor(sections: ModuleSections, name: str) -> DebugSectionDescriptor | None:
    body = sections.get(name)
    if body is None:
        return None
    data = bytes(body)
    return DebugSectionDescriptor(
        stream=io.BytesIO(data),
        name=name,
        global_offset=0,
        size=len(data),
        address=0,
    )


def check_required_sections(sections: ModuleSections) -> None:
    """
    Ensure the mandatory debug sections are present.

    Raises:
        MissingSectionError: Naming the first absent section
    """
    for name in REQUIRED_SECTIONS:
        if name not in sections:
            raise MissingSectionError(name)


def load_dwarf_info(sections: ModuleSections) -> DWARFInfo:
    """
    Build a pyelftools DWARFInfo over the module's debug sections.

    Args:
        sections: Sections recovered from the module

    Returns:
        DWARFInfo reading from in-memory copies of the sections

    Raises:
        MissingSectionError: If a mandatory section is absent
        DwarfFormatError: If pyelftools rejects the section set
    """
    check_required_sections(sections)

    try:
        dwarf_info = DWARFInfo(
            config=WASM_DWARF_CONFIG,
            debug_info_sec=_descriptor(sections, ".debug_info"),
            debug_aranges_sec=_descriptor(sections, ".debug_aranges"),
            debug_abbrev_sec=_descriptor(sections, ".debug_abbrev"),
            debug_frame_sec=_descriptor(sections, ".debug_frame"),
            eh_frame_sec=None,
            debug_str_sec=_descriptor(sections, ".debug_str"),
            debug_loc_sec=_descriptor(sections, ".debug_loc"),
            debug_ranges_sec=_descriptor(sections, ".debug_ranges"),
            debug_line_sec=_descriptor(sections, ".debug_line"),
            debug_pubtypes_sec=_descriptor(sections, ".debug_pubtypes"),
            debug_pubnames_sec=_descriptor(sections, ".debug_pubnames"),
            debug_addr_sec=_descriptor(sections, ".debug_addr"),
            debug_str_offsets_sec=_descriptor(sections, ".debug_str_offsets"),
            debug_line_str_sec=_descriptor(sections, ".debug_line_str"),
            debug_loclists_sec=_descriptor(sections, ".debug_loclists"),
            debug_rnglists_sec=_descriptor(sections, ".debug_rnglists"),
            debug_sup_sec=None,
            gnu_debugaltlink_sec=None,
            debug_types_sec=_descriptor(sections, ".debug_types"),
        )
    except READER_ERRORS as e:
        raise DwarfFormatError(f"Failed to load DWARF info: {e}") from e

    logger.debug(f"DWARF info loaded from {len(sections.sections)} custom sections")
    return dwarf_info


def iter_units(dwarf_info: DWARFInfo) -> Iterator[CompileUnit]:
    """Iterate compilation units, translating reader failures."""
    units = dwarf_info.iter_CUs()
    while True:
        try:
            unit = next(units)
        except StopIteration:
            return
        except READER_ERRORS as e:
            raise DwarfFormatError(f"Malformed compilation unit header: {e}") from e
        yield unit
