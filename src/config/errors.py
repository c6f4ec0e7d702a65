"""
Configuration-specific exceptions.
"""


class ConfigError(Exception):
    """Base exception for configuration errors."""
    pass


class ConfigPathError(ConfigError, ValueError):
    """
    Raised when a dotted key cannot be written.

    Examples:
    - Empty key or empty segment ("a..b")
    - An intermediate segment holds a scalar
    """
    pass


class ConfigReadError(ConfigError):
    """Raised when the configuration document cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read configuration {path}: {reason}")


class ConfigWriteError(ConfigError):
    """Raised when the configuration document cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write configuration {path}: {reason}")
