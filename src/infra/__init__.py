"""
Infrastructure module - logging, settings, preferences store and events.
"""

from . import settings
from .events import (
    Completed,
    Done,
    Error,
    Event,
    EventBus,
    EventSink,
    RunningTest,
    ShowPrompt,
)
from .logging_config import setup_logging
from .prefs_store import PersistenceError, PreferenceStore

__all__ = [
    # settings
    "settings",
    # events
    "Completed",
    "Done",
    "Error",
    "Event",
    "EventBus",
    "EventSink",
    "RunningTest",
    "ShowPrompt",
    # logging
    "setup_logging",
    # preferences
    "PersistenceError",
    "PreferenceStore",
]
