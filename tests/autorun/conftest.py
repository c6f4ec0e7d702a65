"""
Autorun Test Fixtures.

- Preferences store in a temp directory
- Mock clock in epoch milliseconds, advanced only when ticked
- Mock autorun task that can fail or block
"""

import asyncio

import pytest

from src.autorun import (
    AUTORUN_DEFAULTS,
    AUTORUN_KEY,
    AutorunPreferences,
    AutorunTask,
    ReminderScheduler,
    SchedulingError,
)
from src.infra.prefs_store import PreferenceStore


# 2026-01-01T00:00:00Z
FIXED_TIME_MS = 1_767_225_600_000


class MockClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start_ms: int = FIXED_TIME_MS):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def tick(self, ms: int) -> None:
        self.now_ms += ms


class MockAutorunTask(AutorunTask):
    """
    Records schedule/disable calls.

    fail=True makes every call raise SchedulingError.
    gate, if set, is awaited inside each call to hold it in flight.
    """

    def __init__(self):
        self.calls = []
        self.fail = False
        self.gate = None
        self.entered = asyncio.Event()

    async def _call(self, action: str) -> None:
        self.calls.append(action)
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise SchedulingError(action, "launchctl exited with code 1")

    async def schedule(self) -> None:
        await self._call("schedule")

    async def disable(self) -> None:
        await self._call("disable")


@pytest.fixture
def store(tmp_path) -> PreferenceStore:
    """Create a preferences store seeded with the autorun defaults."""
    return PreferenceStore(tmp_path / "prefs.json", defaults={AUTORUN_KEY: AUTORUN_DEFAULTS})


@pytest.fixture
def prefs(store) -> AutorunPreferences:
    return AutorunPreferences(store)


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def autorun_task() -> MockAutorunTask:
    return MockAutorunTask()


@pytest.fixture
def reminder(prefs, sink, autorun_task, clock) -> ReminderScheduler:
    """Create a ReminderScheduler on a supported platform with no prompt delay."""
    return ReminderScheduler(
        prefs=prefs,
        events=sink,
        task=autorun_task,
        platform="darwin",
        clock=clock,
        prompt_delay=0,
    )
