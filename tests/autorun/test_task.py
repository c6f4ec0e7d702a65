"""
Tests for the OS autorun task backends.

Task-management commands are patched; nothing touches launchctl or schtasks.
"""

import asyncio
import plistlib
import sys
from unittest.mock import AsyncMock, patch

import pytest

from src.autorun import (
    LaunchdAutorunTask,
    SchedulingError,
    SchtasksAutorunTask,
    UnsupportedPlatformError,
    get_autorun_task,
    is_autorun_supported,
)
from src.autorun.task import run_command


class TestPlatformSupport:
    @pytest.mark.parametrize("platform,supported", [
        ("darwin", True),
        ("win32", True),
        ("linux", False),
        ("freebsd13", False),
    ])
    def test_is_autorun_supported(self, platform, supported):
        assert is_autorun_supported(platform) is supported

    def test_backend_per_platform(self):
        assert isinstance(get_autorun_task("darwin", "ooniprobe", "probe", 3600), LaunchdAutorunTask)
        assert isinstance(get_autorun_task("win32", "ooniprobe", "probe", 3600), SchtasksAutorunTask)

    def test_unsupported_platform(self):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            get_autorun_task("linux", "ooniprobe", "probe", 3600)
        assert exc_info.value.platform == "linux"


class TestLaunchdAutorunTask:
    """macOS LaunchAgent backend."""

    @pytest.fixture
    def task(self, tmp_path):
        return LaunchdAutorunTask(
            binary="/Applications/OONI Probe.app/ooniprobe",
            label="local.probe-control.autorun",
            interval_seconds=3600,
            agents_dir=tmp_path / "LaunchAgents",
        )

    def test_schedule_writes_plist_and_loads(self, task):
        with patch("src.autorun.task.run_command", new_callable=AsyncMock) as mock_run:
            asyncio.run(task.schedule())

        with open(task.plist_path, "rb") as f:
            plist = plistlib.load(f)
        assert plist["Label"] == "local.probe-control.autorun"
        assert plist["ProgramArguments"] == [
            "/Applications/OONI Probe.app/ooniprobe", "--batch", "run", "unattended",
        ]
        assert plist["StartInterval"] == 3600
        mock_run.assert_awaited_once_with(
            ["launchctl", "load", "-w", str(task.plist_path)], "schedule"
        )

    def test_disable_unloads_and_removes_plist(self, task):
        with patch("src.autorun.task.run_command", new_callable=AsyncMock) as mock_run:
            asyncio.run(task.schedule())
            asyncio.run(task.disable())

        assert not task.plist_path.exists()
        mock_run.assert_awaited_with(
            ["launchctl", "unload", "-w", str(task.plist_path)], "disable"
        )

    def test_disable_without_plist_is_noop(self, task):
        with patch("src.autorun.task.run_command", new_callable=AsyncMock) as mock_run:
            asyncio.run(task.disable())

        mock_run.assert_not_awaited()

    def test_launchctl_failure_propagates(self, task):
        with patch(
            "src.autorun.task.run_command",
            new_callable=AsyncMock,
            side_effect=SchedulingError("schedule", "Load failed: 5"),
        ):
            with pytest.raises(SchedulingError):
                asyncio.run(task.schedule())


class TestSchtasksAutorunTask:
    """Windows Task Scheduler backend."""

    def test_create_command(self):
        task = SchtasksAutorunTask(r"C:\Program Files\OONI\ooniprobe.exe", "probe-autorun", 3600)

        cmd = task.build_create_command()

        assert cmd[:3] == ["schtasks", "/Create", "/F"]
        assert cmd[cmd.index("/MO") + 1] == "60"
        assert cmd[cmd.index("/TN") + 1] == "probe-autorun"
        assert cmd[cmd.index("/TR") + 1] == r'"C:\Program Files\OONI\ooniprobe.exe" --batch run unattended'

    def test_short_interval_rounds_up_to_a_minute(self):
        task = SchtasksAutorunTask("ooniprobe.exe", "probe-autorun", 20)
        cmd = task.build_create_command()
        assert cmd[cmd.index("/MO") + 1] == "1"

    def test_disable_deletes_task(self):
        task = SchtasksAutorunTask("ooniprobe.exe", "probe-autorun", 3600)

        with patch("src.autorun.task.run_command", new_callable=AsyncMock) as mock_run:
            asyncio.run(task.disable())

        mock_run.assert_awaited_once_with(
            ["schtasks", "/Delete", "/F", "/TN", "probe-autorun"], "disable"
        )


@pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX utilities")
class TestRunCommand:
    """Tests for run_command()."""

    def test_returns_stdout(self):
        assert asyncio.run(run_command(["echo", "loaded"], "schedule")) == "loaded"

    def test_non_zero_exit(self):
        with pytest.raises(SchedulingError) as exc_info:
            asyncio.run(run_command(["false"], "disable"))
        assert exc_info.value.action == "disable"

    def test_missing_executable(self, tmp_path):
        with pytest.raises(SchedulingError, match="cannot execute"):
            asyncio.run(run_command([str(tmp_path / "launchctl")], "schedule"))
