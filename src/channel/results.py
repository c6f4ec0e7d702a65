"""
Results collaborator.

The results database belongs to the measurement engine; it is read
through `ooniprobe --batch list [result_id]`, which prints one JSON
object per line:

    {"fields": {"type": "result_item", "name": "websites", ...}, "level": "info", ...}
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional


logger = logging.getLogger(__name__)


class ResultsError(Exception):
    """Raised when results cannot be listed."""
    pass


class ResultsSource(ABC):
    """Read-only access to stored results and measurements."""

    @abstractmethod
    async def list_results(self) -> dict:
        """
        Returns:
            {"rows": [result rows, oldest first], "summary": {...}}
        """
        ...

    @abstractmethod
    async def list_measurements(self, result_id: str) -> dict:
        """
        Returns:
            {"rows": [measurement rows], "summary": {...}}
        """
        ...


def parse_list_output(output: str, item_type: str, summary_type: str) -> dict:
    """
    Parse ooniprobe JSON-lines list output.

    Lines that are not JSON, or carry other types, are ignored.
    """
    rows = []
    summary: dict = {}
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring non-JSON list output: {line[:80]}")
            continue
        fields = entry.get("fields", {}) if isinstance(entry, dict) else {}
        entry_type = fields.get("type")
        if entry_type == item_type:
            rows.append(fields)
        elif entry_type == summary_type:
            summary = fields
    return {"rows": rows, "summary": summary}


def last_start_time(results: dict, test_group: str) -> Optional[str]:
    """
    Start time of the most recent result for a group ("all" matches any).
    """
    rows = results.get("rows", [])
    if test_group != "all":
        rows = [row for row in rows if row.get("name") == test_group]
    if not rows:
        return None
    return rows[-1].get("start_time")


class OoniprobeResults(ResultsSource):
    """ResultsSource backed by the ooniprobe CLI."""

    def __init__(self, binary: str = "ooniprobe", timeout: float = 60.0):
        self.binary = binary
        self.timeout = timeout

    async def _list(self, *args: str) -> str:
        cmd = [self.binary, "--batch", "list", *args]
        logger.debug(f"Executing: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ResultsError(f"'{' '.join(cmd)}' timed out after {self.timeout}s") from e
        except OSError as e:
            raise ResultsError(f"cannot execute {self.binary}: {e}") from e

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ResultsError(message or f"{self.binary} exited with code {process.returncode}")
        return stdout.decode("utf-8", errors="replace")

    async def list_results(self) -> dict:
        output = await self._list()
        return parse_list_output(output, "result_item", "result_summary")

    async def list_measurements(self, result_id: str) -> dict:
        output = await self._list(str(result_id))
        return parse_list_output(output, "measurement_item", "measurement_summary")
