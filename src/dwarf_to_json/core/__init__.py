"""Core conversion pipeline."""

from .convert import convert
from .errors import (
    DataFormatError,
    DwarfFormatError,
    DwarfToJsonError,
    MissingEntryError,
    MissingSectionError,
    OutputFormatError,
    WasmFormatError,
)
from .models import DebugInfoObj, LocationInfo, LocationRecord, ScopeArena

__all__ = [
    "DataFormatError",
    "DebugInfoObj",
    "DwarfFormatError",
    "DwarfToJsonError",
    "LocationInfo",
    "LocationRecord",
    "MissingEntryError",
    "MissingSectionError",
    "OutputFormatError",
    "ScopeArena",
    "WasmFormatError",
    "convert",
]
