"""
Pytest configuration and shared fixtures.

- Environment isolation (every configured path under tmp_path)
- Recording event sink
- A ControlChannel wired to in-process collaborators:
  workers that succeed unless their group is listed as blocking,
  a results source with canned rows, a mock autorun task, and
  preferences/configuration documents in a temp directory
"""

import asyncio
import json
import logging

import pytest

from src.autorun import (
    AUTORUN_DEFAULTS,
    AUTORUN_KEY,
    AutorunPreferences,
    AutorunTask,
    ReminderScheduler,
)
from src.channel import ControlChannel, ResultsSource
from src.config import ConfigAccessor
from src.infra.events import EventBus
from src.infra.prefs_store import PreferenceStore
from src.runner import RunSequencer, TestWorker, WorkerError


RESULT_ROWS = [
    {"type": "result_item", "id": 1, "name": "websites", "start_time": "2026-01-01T10:00:00Z"},
    {"type": "result_item", "id": 2, "name": "im", "start_time": "2026-01-02T10:00:00Z"},
]


@pytest.fixture(autouse=True, scope="function")
def isolated_environment(tmp_path, monkeypatch):
    """
    Point every configured path at a temporary directory.

    Tests run with API_AUTH_ENABLED=false unless they set it themselves.
    """
    monkeypatch.setenv("PROBE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PROBE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("OONI_HOME", str(tmp_path / "ooni_home"))
    monkeypatch.setenv("API_AUTH_ENABLED", "false")
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.delenv("OONIPROBE_BIN", raising=False)

    yield

    # setup_logging() detaches src.* loggers from the root logger
    src_logger = logging.getLogger("src")
    src_logger.handlers.clear()
    src_logger.setLevel(logging.NOTSET)
    src_logger.propagate = True


class RecordingSink:
    """
    Event sink that records every published event.

    on_event, if set, is awaited after each event is recorded.
    """

    def __init__(self):
        self.events = []
        self.on_event = None

    async def publish(self, event) -> None:
        self.events.append(event)
        if self.on_event is not None:
            await self.on_event(event)

    @property
    def names(self) -> list:
        return [event.name for event in self.events]

    def count(self, name: str) -> int:
        return self.names.count(name)


@pytest.fixture
def sink() -> RecordingSink:
    """Create a recording event sink."""
    return RecordingSink()


@pytest.fixture
def event_bus() -> EventBus:
    """Create an empty event bus."""
    return EventBus()


# =============================================================================
# Channel collaborators
# =============================================================================

class ChannelWorker(TestWorker):
    def __init__(self, group, input_file, blocking: bool):
        super().__init__(group, input_file)
        self.blocking = blocking

    async def run(self, cancel: asyncio.Event) -> None:
        if self.blocking:
            await cancel.wait()
            raise WorkerError(self.group, "terminated by stop request", exit_code=-15)
        await asyncio.sleep(0)


class ChannelWorkerFactory:
    """Groups in `blocking` wait for their cancel token; the rest succeed."""

    def __init__(self):
        self.blocking = set()
        self.workers = []

    def __call__(self, group, input_file=None):
        worker = ChannelWorker(group, input_file, group in self.blocking)
        self.workers.append(worker)
        return worker


class FakeResults(ResultsSource):
    """Results source with canned rows; error, if set, is raised instead."""

    def __init__(self):
        self.rows = list(RESULT_ROWS)
        self.error = None
        self.measurement_ids = []

    async def list_results(self) -> dict:
        if self.error:
            raise self.error
        return {"rows": self.rows, "summary": {"total_tests": len(self.rows)}}

    async def list_measurements(self, result_id: str) -> dict:
        if self.error:
            raise self.error
        self.measurement_ids.append(result_id)
        return {"rows": [{"type": "measurement_item", "result_id": result_id}], "summary": {}}


class FakeAutorunTask(AutorunTask):
    def __init__(self):
        self.calls = []

    async def schedule(self) -> None:
        self.calls.append("schedule")

    async def disable(self) -> None:
        self.calls.append("disable")


@pytest.fixture
def channel_workers() -> ChannelWorkerFactory:
    return ChannelWorkerFactory()


@pytest.fixture
def fake_results() -> FakeResults:
    return FakeResults()


@pytest.fixture
def fake_autorun_task() -> FakeAutorunTask:
    return FakeAutorunTask()


@pytest.fixture
def ooni_config_path(tmp_path):
    """Write a small ooniprobe configuration document."""
    path = tmp_path / "ooni_home" / "config.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"sharing": {"upload_results": True}, "_version": 1}))
    return path


@pytest.fixture
def channel(tmp_path, channel_workers, fake_results, fake_autorun_task, ooni_config_path) -> ControlChannel:
    """Create a ControlChannel on a supported platform with no prompt delay."""
    events = EventBus()
    store = PreferenceStore(tmp_path / "prefs.json", defaults={AUTORUN_KEY: AUTORUN_DEFAULTS})
    return ControlChannel(
        sequencer=RunSequencer(worker_factory=channel_workers, events=events),
        reminder=ReminderScheduler(
            prefs=AutorunPreferences(store),
            events=events,
            task=fake_autorun_task,
            platform="darwin",
            prompt_delay=0,
        ),
        config=ConfigAccessor(ooni_config_path),
        store=store,
        results=fake_results,
        events=events,
        input_dir=tmp_path / "input",
    )
