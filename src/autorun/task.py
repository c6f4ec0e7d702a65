"""
OS-level autorun task backends.

The autorun task periodically runs `ooniprobe --batch run unattended`.
- macOS: a LaunchAgent plist loaded with launchctl
- Windows: a Task Scheduler entry managed with schtasks
"""

import asyncio
import logging
import plistlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .errors import SchedulingError, UnsupportedPlatformError


logger = logging.getLogger(__name__)

MACOS = "darwin"
WINDOWS = "win32"
SUPPORTED_PLATFORMS = (MACOS, WINDOWS)


def is_autorun_supported(platform: str) -> bool:
    """Autorun is only available on macOS and Windows."""
    return platform in SUPPORTED_PLATFORMS


def unattended_command(binary: str) -> list[str]:
    return [binary, "--batch", "run", "unattended"]


async def run_command(cmd: list[str], action: str) -> str:
    """
    Run a task-management command and return its stdout.

    Raises:
        SchedulingError: If the command cannot start or exits non-zero
    """
    logger.debug(f"[Autorun] Executing: {' '.join(cmd)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
    except OSError as e:
        raise SchedulingError(action, f"cannot execute {cmd[0]}: {e}") from e

    if process.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise SchedulingError(action, message or f"{cmd[0]} exited with code {process.returncode}")
    return stdout.decode("utf-8", errors="replace").strip()


class AutorunTask(ABC):
    """Arms and disarms the recurring background task."""

    @abstractmethod
    async def schedule(self) -> None:
        """
        Arm the recurring task.

        Raises:
            SchedulingError: If the task could not be created
        """
        ...

    @abstractmethod
    async def disable(self) -> None:
        """
        Disarm the recurring task.

        Raises:
            SchedulingError: If the task could not be removed
        """
        ...


class LaunchdAutorunTask(AutorunTask):
    """macOS LaunchAgent backend."""

    def __init__(
        self,
        binary: str,
        label: str,
        interval_seconds: int,
        agents_dir: Optional[Path] = None,
    ):
        self.binary = binary
        self.label = label
        self.interval_seconds = interval_seconds
        self.agents_dir = agents_dir or Path.home() / "Library" / "LaunchAgents"

    @property
    def plist_path(self) -> Path:
        return self.agents_dir / f"{self.label}.plist"

    def build_plist(self) -> dict:
        return {
            "Label": self.label,
            "ProgramArguments": unattended_command(self.binary),
            "StartInterval": self.interval_seconds,
            "RunAtLoad": False,
        }

    def _write_plist(self) -> None:
        self.agents_dir.mkdir(parents=True, exist_ok=True)
        with open(self.plist_path, "wb") as f:
            plistlib.dump(self.build_plist(), f)

    async def schedule(self) -> None:
        try:
            await asyncio.to_thread(self._write_plist)
        except OSError as e:
            raise SchedulingError("schedule", f"cannot write {self.plist_path}: {e}") from e
        await run_command(["launchctl", "load", "-w", str(self.plist_path)], "schedule")
        logger.info(f"[Autorun] LaunchAgent {self.label} loaded")

    async def disable(self) -> None:
        if self.plist_path.exists():
            await run_command(["launchctl", "unload", "-w", str(self.plist_path)], "disable")
            self.plist_path.unlink(missing_ok=True)
        logger.info(f"[Autorun] LaunchAgent {self.label} unloaded")


class SchtasksAutorunTask(AutorunTask):
    """Windows Task Scheduler backend."""

    def __init__(self, binary: str, label: str, interval_seconds: int):
        self.binary = binary
        self.label = label
        self.interval_seconds = interval_seconds

    def build_create_command(self) -> list[str]:
        minutes = max(1, self.interval_seconds // 60)
        return [
            "schtasks", "/Create", "/F",
            "/SC", "MINUTE",
            "/MO", str(minutes),
            "/TN", self.label,
            "/TR", " ".join(f'"{part}"' if " " in part else part
                            for part in unattended_command(self.binary)),
        ]

    async def schedule(self) -> None:
        await run_command(self.build_create_command(), "schedule")
        logger.info(f"[Autorun] Scheduled task {self.label} created")

    async def disable(self) -> None:
        await run_command(["schtasks", "/Delete", "/F", "/TN", self.label], "disable")
        logger.info(f"[Autorun] Scheduled task {self.label} deleted")


def get_autorun_task(
    platform: str,
    binary: str,
    label: str,
    interval_seconds: int,
) -> AutorunTask:
    """
    Pick the autorun backend for a platform.

    Raises:
        UnsupportedPlatformError: If the platform has no backend
    """
    if platform == MACOS:
        return LaunchdAutorunTask(binary, label, interval_seconds)
    if platform == WINDOWS:
        return SchtasksAutorunTask(binary, label, interval_seconds)
    raise UnsupportedPlatformError(platform)
