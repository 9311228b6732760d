#!/usr/bin/env python3

"""WebAssembly section table walker.

Isolates the custom sections that carry DWARF data (``.debug_*``) and the
``sourceURLPrefixes`` rewrite table, and records where the code section body
starts so DWARF addresses can be turned into module offsets.
"""

from dataclasses import dataclass, field

from ..infrastructure.logging import get_logger
from .byte_cursor import ByteCursor
from .errors import WasmFormatError

logger = get_logger(__name__)

WASM_PREAMBLE = b"\x00asm\x01\x00\x00\x00"

WASM_SECTION_CUSTOM = 0
WASM_SECTION_CODE = 10

DEBUG_SECTION_PREFIX = ".debug_"
URL_PREFIXES_SECTION = "sourceURLPrefixes"


def is_debug_section_name(section_name: str) -> bool:
    return section_name.startswith(DEBUG_SECTION_PREFIX)


def is_url_prefixes_name(section_name: str) -> bool:
    return section_name == URL_PREFIXES_SECTION


@dataclass
class ModuleSections:
    """Debug sections retained from a module plus the code section offset."""

    sections: dict[str, memoryview] = field(default_factory=dict)
    code_section_offset: int = 0

    def get(self, name: str) -> memoryview | None:
        return self.sections.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.sections


def read_debug_sections(module: bytes | memoryview) -> ModuleSections:
    """
    Walk the section table of a WebAssembly module.

    Args:
        module: Whole module bytes

    Returns:
        ModuleSections with the retained custom section bodies

    Raises:
        WasmFormatError: On a bad preamble or truncated/invalid section
    """
    data = memoryview(module)
    if bytes(data[:8]) != WASM_PREAMBLE:
        raise WasmFormatError("Not a WebAssembly module (bad magic or version)")

    cursor = ByteCursor(data[8:])
    result = ModuleSections()

    while not cursor.eof():
        section_id = cursor.u32()
        section_len = cursor.u32()

        if section_id != WASM_SECTION_CUSTOM:
            if section_id == WASM_SECTION_CODE:
                result.code_section_offset = len(data) - cursor.len()
                logger.debug(f"Code section body at offset 0x{result.code_section_offset:x}")
            cursor.skip(section_len)
            continue

        name_start = cursor.len()
        section_name = cursor.str()
        name_len = name_start - cursor.len()
        if section_len < name_len:
            raise WasmFormatError(
                f"Custom section '{section_name}' is shorter than its name"
            )
        body = cursor.skip(section_len - name_len)

        if not is_debug_section_name(section_name) and not is_url_prefixes_name(section_name):
            continue

        logger.debug(f"Found custom section {section_name} ({len(body)} bytes)")
        result.sections[section_name] = body

    return result
