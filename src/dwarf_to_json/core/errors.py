#!/usr/bin/env python3

"""Error hierarchy for the WASM/DWARF to source map conversion.

Every failure raised from the conversion pipeline derives from
``DwarfToJsonError`` so callers can treat the result as binary: either the
complete JSON document is returned or one of these is raised.
"""


class DwarfToJsonError(Exception):
    """Base class for all conversion failures."""


class WasmFormatError(DwarfToJsonError):
    """The module bytes are not a well-formed WebAssembly binary."""


class DataFormatError(DwarfToJsonError):
    """The embedded DWARF data cannot be used."""


class DwarfFormatError(DataFormatError):
    """The DWARF reader rejected a record as structurally invalid."""


class MissingSectionError(DataFormatError):
    """A mandatory debug section is absent from the module."""

    def __init__(self, section_name: str) -> None:
        super().__init__(f"Missing mandatory section: {section_name}")
        self.section_name = section_name


class MissingEntryError(DataFormatError):
    """A line program file index has no entry in the file table."""

    def __init__(self, file_index: int) -> None:
        super().__init__(f"File index {file_index} not found in line program header")
        self.file_index = file_index


class OutputFormatError(DwarfToJsonError):
    """The final JSON document could not be assembled."""
