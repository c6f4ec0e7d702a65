"""
Autorun reminder policy and OS task backends.
"""

from .errors import AutorunError, AutorunRecordError, SchedulingError, UnsupportedPlatformError
from .prefs import AUTORUN_DEFAULTS, AUTORUN_KEY, AutorunPreferences, AutorunPrefs
from .reminder import (
    MAX_BACKOFF,
    MIN_TIME_SINCE_LAST_REMINDER,
    SHOW_PROMPT_AFTER_DELAY,
    ReminderScheduler,
    ReminderState,
)
from .task import (
    AutorunTask,
    LaunchdAutorunTask,
    SchtasksAutorunTask,
    get_autorun_task,
    is_autorun_supported,
)

__all__ = [
    # Errors
    "AutorunError",
    "AutorunRecordError",
    "SchedulingError",
    "UnsupportedPlatformError",
    # Preferences
    "AUTORUN_DEFAULTS",
    "AUTORUN_KEY",
    "AutorunPreferences",
    "AutorunPrefs",
    # Reminder
    "MAX_BACKOFF",
    "MIN_TIME_SINCE_LAST_REMINDER",
    "SHOW_PROMPT_AFTER_DELAY",
    "ReminderScheduler",
    "ReminderState",
    # Task backends
    "AutorunTask",
    "LaunchdAutorunTask",
    "SchtasksAutorunTask",
    "get_autorun_task",
    "is_autorun_supported",
]
