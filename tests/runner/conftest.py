"""
Runner Test Fixtures.

Mock workers let each test decide, per group, whether the invocation
succeeds, fails, or blocks until its cancel token is set.
"""

import asyncio
from typing import Optional

import pytest

from src.runner import RunSequencer, TestWorker, WorkerError


OK = "ok"
FAIL = "fail"
BLOCK = "block"


class MockWorker(TestWorker):
    """Worker whose outcome is set by the factory."""

    def __init__(self, group: str, input_file: Optional[str], behavior: str, started: asyncio.Event):
        super().__init__(group, input_file)
        self.behavior = behavior
        self.started = started
        self.cancelled = False

    async def run(self, cancel: asyncio.Event) -> None:
        self.started.set()
        if self.behavior == FAIL:
            raise WorkerError(self.group, "probe crashed", exit_code=1)
        if self.behavior == BLOCK:
            await cancel.wait()
            self.cancelled = True
            raise WorkerError(self.group, "terminated by stop request", exit_code=-15)
        # Let other tasks (stop requests) interleave like a real worker would
        await asyncio.sleep(0)


class MockWorkerFactory:
    """
    Creates MockWorkers and records every invocation.

    Groups default to OK; set_behavior() overrides one group.
    """

    def __init__(self):
        self.behaviors = {}
        self.workers = []
        self.started = {}

    def set_behavior(self, group: str, behavior: str) -> None:
        self.behaviors[group] = behavior

    def started_event(self, group: str) -> asyncio.Event:
        if group not in self.started:
            self.started[group] = asyncio.Event()
        return self.started[group]

    def __call__(self, group: str, input_file: Optional[str] = None) -> MockWorker:
        worker = MockWorker(
            group,
            input_file,
            self.behaviors.get(group, OK),
            self.started_event(group),
        )
        self.workers.append(worker)
        return worker

    @property
    def groups_run(self) -> list:
        return [worker.group for worker in self.workers]


@pytest.fixture
def worker_factory() -> MockWorkerFactory:
    """Create a mock worker factory."""
    return MockWorkerFactory()


@pytest.fixture
def sequencer(worker_factory, sink) -> RunSequencer:
    """Create a RunSequencer wired to mock workers and a recording sink."""
    return RunSequencer(worker_factory=worker_factory, events=sink)
