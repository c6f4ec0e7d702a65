"""
Control channel exceptions.
"""


class ChannelError(Exception):
    """Base exception for control channel errors."""
    pass


class UnknownOperationError(ChannelError, LookupError):
    """Raised when a message names an operation the channel does not handle."""

    def __init__(self, operation: str, kind: str):
        self.operation = operation
        self.kind = kind
        super().__init__(f"Unknown {kind} operation: {operation!r}")


class InvalidPayloadError(ChannelError, ValueError):
    """Raised when a message payload is missing required fields."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Invalid payload for {operation}: {reason}")
