"""
Persisted autorun preferences.

Stored in the preferences document under the "autorun" key:
    {"enabled": false, "remind": true, "backoff": 0,
     "nextBackoff": 1, "timestamp": 0}

timestamp is epoch milliseconds of the last shown prompt.
"""

from dataclasses import dataclass

from src.config.errors import ConfigPathError
from src.infra.prefs_store import PreferenceStore

from .errors import AutorunRecordError


AUTORUN_KEY = "autorun"

AUTORUN_DEFAULTS = {
    "enabled": False,
    "remind": True,
    "backoff": 0,
    "nextBackoff": 1,
    "timestamp": 0,
}

# python field name -> stored field name
STORED_NAMES = {
    "enabled": "enabled",
    "remind": "remind",
    "backoff": "backoff",
    "next_backoff": "nextBackoff",
    "timestamp": "timestamp",
}


@dataclass
class AutorunPrefs:
    """Snapshot of the autorun record."""

    enabled: bool = False
    remind: bool = True
    backoff: int = 0
    next_backoff: int = 1
    timestamp: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "AutorunPrefs":
        merged = {**AUTORUN_DEFAULTS, **(data or {})}
        return cls(
            enabled=bool(merged["enabled"]),
            remind=bool(merged["remind"]),
            backoff=max(0, int(merged["backoff"])),
            next_backoff=max(0, int(merged["nextBackoff"])),
            timestamp=int(merged["timestamp"]),
        )

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "remind": self.remind,
            "backoff": self.backoff,
            "nextBackoff": self.next_backoff,
            "timestamp": self.timestamp,
        }


class AutorunPreferences:
    """
    Reads and writes the autorun record through the preferences store.

    Every write goes straight to the store; nothing is cached.
    """

    def __init__(self, store: PreferenceStore):
        self.store = store

    def load(self) -> AutorunPrefs:
        """
        Raises:
            PersistenceError: If the preferences document is unreadable
            AutorunRecordError: If the stored record is not a valid mapping
        """
        record = self.store.get(AUTORUN_KEY)
        if record is not None and not isinstance(record, dict):
            raise AutorunRecordError(f"expected an object, found {record!r}")
        try:
            return AutorunPrefs.from_dict(record or {})
        except (TypeError, ValueError) as e:
            raise AutorunRecordError(str(e)) from e

    def save(self, **fields) -> None:
        """
        Persist the given fields (python names) in one durable write.

        Example:
            prefs.save(backoff=0, next_backoff=4)

        Raises:
            PersistenceError: If the preferences document cannot be written
            AutorunRecordError: If the stored record is not a mapping
        """
        unknown = set(fields) - set(STORED_NAMES)
        if unknown:
            raise AttributeError(f"Unknown autorun field(s): {sorted(unknown)}")
        try:
            self.store.update(
                AUTORUN_KEY,
                {STORED_NAMES[name]: value for name, value in fields.items()},
            )
        except ConfigPathError as e:
            raise AutorunRecordError(str(e)) from e
