"""
ConfigAccessor - dotted-path access to the ooniprobe configuration tree.

The configuration is one JSON document owned by the measurement engine.
Reads load the whole document; writes are read-modify-write cycles
serialised through a single asyncio.Lock so concurrent set() calls on
different keys never overwrite each other.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigReadError, ConfigWriteError
from .tree import Lookup, assign, lookup


logger = logging.getLogger(__name__)


class ConfigAccessor:
    """
    Read/write the nested configuration tree by dotted key.

    A missing document behaves as an empty tree.
    """

    def __init__(self, config_path: str | Path):
        """
        Args:
            config_path: Path to the JSON configuration document
        """
        self.config_path = Path(config_path)
        self._write_lock = asyncio.Lock()

    def _load(self) -> dict:
        if not self.config_path.exists():
            return {}
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                tree = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigReadError(str(self.config_path), str(e)) from e
        if not isinstance(tree, dict):
            raise ConfigReadError(str(self.config_path), "document root is not an object")
        return tree

    def _save(self, tree: dict) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.config_path.parent, prefix=".config.", suffix=".tmp"
            )
        except OSError as e:
            raise ConfigWriteError(str(self.config_path), str(e)) from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(tree, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.config_path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise ConfigWriteError(str(self.config_path), str(e)) from e
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    async def lookup_key(self, key: Optional[str] = None) -> Lookup:
        """Resolve key against the current document."""
        tree = await asyncio.to_thread(self._load)
        return lookup(tree, key)

    async def get(self, key: Optional[str] = None) -> Any:
        """
        Get the whole tree, or the value at a dotted key.

        Args:
            key: Dotted path; None returns the whole tree

        Returns:
            The located value, or None if any segment is absent
        """
        result = await self.lookup_key(key)
        logger.debug(f"config.get {key}: found={result.found}")
        return result.value if result.found else None

    async def set(self, key: str, value: Any) -> dict:
        """
        Write value at key and persist the document.

        Args:
            key: Dotted path; intermediate mappings are created as needed
            value: New value

        Returns:
            The updated full tree

        Raises:
            ConfigPathError: If the key crosses a non-mapping value
            ConfigReadError: If the current document is unreadable
            ConfigWriteError: If the updated document cannot be written
        """
        async with self._write_lock:
            tree = await asyncio.to_thread(self._load)
            current = lookup(tree, key)
            updated = assign(tree, key, value)
            await asyncio.to_thread(self._save, updated)

        if current.found:
            logger.info(f"config.set {key}: {current.value!r} -> {value!r}")
        else:
            logger.info(f"config.set {key}: (unset) -> {value!r}")
        return updated
