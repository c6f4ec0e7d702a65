"""
Configuration tree access.
"""

from .accessor import ConfigAccessor
from .errors import ConfigError, ConfigPathError, ConfigReadError, ConfigWriteError
from .tree import Lookup, assign, lookup, split_key

__all__ = [
    "ConfigAccessor",
    "ConfigError",
    "ConfigPathError",
    "ConfigReadError",
    "ConfigWriteError",
    "Lookup",
    "assign",
    "lookup",
    "split_key",
]
