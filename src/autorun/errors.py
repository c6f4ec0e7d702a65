"""
Autorun-specific exceptions.
"""


class AutorunError(Exception):
    """Base exception for autorun errors."""
    pass


class SchedulingError(AutorunError):
    """
    Raised when the OS-level autorun task cannot be armed or disarmed.

    Never crosses the ReminderScheduler boundary: schedule()/disable()
    log it and return False.
    """

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"Autorun {action} failed: {reason}")


class UnsupportedPlatformError(SchedulingError):
    """Raised when autorun is requested on a platform without a task backend."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__("setup", f"platform '{platform}' is not supported")


class AutorunRecordError(AutorunError):
    """Raised when the stored autorun record is not a usable mapping."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed autorun record: {reason}")
