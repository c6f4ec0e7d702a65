"""
JSON-file preferences store.

Holds the preferences document: the autorun record plus free-form UI
preferences, each addressable by dotted key ("autorun.backoff").

Every set() rewrites the whole document through a temp file and
os.replace, so the write is durable when the call returns.
"""

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from src.config.errors import ConfigPathError
from src.config.tree import assign, lookup


logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the preferences document cannot be read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Preferences store error ({path}): {reason}")


class PreferenceStore:
    """
    Key-value store over a single JSON document.

    Missing keys fall back to the defaults given at construction.
    Writers are serialised with a lock; readers always see the last
    completed write.
    """

    def __init__(self, path: str | Path, defaults: Optional[dict] = None):
        """
        Initialize preferences store.

        Args:
            path: Path to the JSON document (created on first write)
            defaults: Default document merged under persisted values
        """
        self.path = Path(path)
        self.defaults = copy.deepcopy(defaults or {})
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(str(self.path), str(e)) from e
        if not isinstance(data, dict):
            raise PersistenceError(str(self.path), "document root is not an object")
        return data

    def _write(self, data: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(str(self.path), str(e)) from e

    def _merged(self, stored: dict) -> dict:
        return _deep_merge(self.defaults, stored)

    def get(self, key: Optional[str] = None) -> Any:
        """
        Get a value by dotted key, or the whole document.

        Returns:
            The stored (or default) value, None if the key is absent

        Raises:
            PersistenceError: If the document cannot be read
        """
        with self._lock:
            document = self._merged(self._read())
        result = lookup(document, key)
        return copy.deepcopy(result.value) if result.found else None

    def set(self, key: str, value: Any) -> None:
        """
        Set a value by dotted key and persist the document.

        Raises:
            PersistenceError: If the document cannot be read or written
            ConfigPathError: If the key crosses a non-mapping value
        """
        with self._lock:
            stored = self._read()
            try:
                updated = assign(stored, key, value)
            except ConfigPathError:
                logger.error(f"Rejected preference key {key!r}")
                raise
            self._write(updated)
        logger.debug(f"prefs.set {key}")

    def update(self, key: str, values: dict) -> None:
        """Set several fields under key in a single durable write."""
        with self._lock:
            updated = self._read()
            for field_name, value in values.items():
                updated = assign(updated, f"{key}.{field_name}", value)
            self._write(updated)
        logger.debug(f"prefs.update {key}: {sorted(values)}")


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = copy.deepcopy(v)
    return merged
