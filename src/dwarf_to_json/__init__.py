"""dwarf-to-json - source maps from DWARF sections of WebAssembly modules."""

from .core import convert
from .infrastructure.config import Config
from .main import main

__all__ = ["Config", "convert", "main"]
