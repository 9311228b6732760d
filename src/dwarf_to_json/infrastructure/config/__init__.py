"""Infrastructure configuration module."""

from .converter_config import Config
from .defaults import get_config

__all__ = ["Config", "get_config"]
