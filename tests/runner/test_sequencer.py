"""
RunSequencer scenario tests.

- Target expansion and execution order
- Exactly-once completion
- Continue-on-error
- Cooperative stop (idle, between groups, mid-group)
- Single-run enforcement
"""

import asyncio

import pytest

from src.infra.events import Completed, Done, Error, RunningTest
from src.runner import (
    SUPPORTED_TEST_GROUPS,
    RunInProgressError,
    RunRequest,
    RunSequencer,
    UnknownTestGroupError,
)

from .conftest import BLOCK, FAIL


ALL = list(SUPPORTED_TEST_GROUPS)


class TestSingleGroupRun:
    """Runs targeting one test group."""

    def test_websites_run_event_sequence(self, sequencer, sink, worker_factory):
        """run(websites) -> running-test, done, completed."""
        asyncio.run(sequencer.run(RunRequest(target="websites")))

        assert sink.events == [RunningTest("websites"), Done("websites"), Completed()]
        assert worker_factory.groups_run == ["websites"]

    def test_input_file_passed_to_worker(self, sequencer, worker_factory):
        """The input file reaches the worker unchanged."""
        asyncio.run(sequencer.run(RunRequest(target="websites", input_file="/tmp/urls.txt")))

        assert worker_factory.workers[0].input_file == "/tmp/urls.txt"

    def test_failed_group_reports_error(self, sequencer, sink, worker_factory):
        """A failing worker yields error(group, cause) then completed."""
        worker_factory.set_behavior("im", FAIL)

        asyncio.run(sequencer.run(RunRequest(target="im")))

        assert sink.names == ["running-test", "error", "completed"]
        error = sink.events[1]
        assert isinstance(error, Error)
        assert error.group == "im"
        assert "probe crashed" in error.cause

    def test_state_cleared_after_run(self, sequencer):
        """The worker slot and running flag are cleared when the run ends."""
        asyncio.run(sequencer.run(RunRequest(target="middlebox")))

        assert sequencer.is_running is False
        assert sequencer.current_worker is None
        assert sequencer.stop_requested is False


class TestAllGroupsRun:
    """Runs targeting the 'all' pseudo-group."""

    def test_all_runs_every_group_in_order(self, sequencer, sink, worker_factory):
        """Each runnable group runs as its own worker, in enumeration order."""
        asyncio.run(sequencer.run(RunRequest(target="all")))

        assert worker_factory.groups_run == ALL
        assert "default" not in worker_factory.groups_run
        assert "all" not in worker_factory.groups_run
        assert len({id(w) for w in worker_factory.workers}) == len(ALL)

        expected = []
        for group in ALL:
            expected.extend([RunningTest(group), Done(group)])
        expected.append(Completed())
        assert sink.events == expected

    def test_failure_does_not_halt_sequence(self, sequencer, sink, worker_factory):
        """A failing group is reported and the next group still runs."""
        worker_factory.set_behavior("circumvention", FAIL)

        asyncio.run(sequencer.run(RunRequest(target="all")))

        assert worker_factory.groups_run == ALL
        assert sink.count("error") == 1
        assert sink.count("done") == len(ALL) - 1
        assert sink.count("completed") == 1

    def test_completed_once_when_every_group_fails(self, sequencer, sink, worker_factory):
        """completed is emitted exactly once regardless of outcomes."""
        for group in ALL:
            worker_factory.set_behavior(group, FAIL)

        asyncio.run(sequencer.run(RunRequest(target="all")))

        assert sink.count("error") == len(ALL)
        assert sink.count("completed") == 1
        assert sink.names[-1] == "completed"

    def test_custom_group_list_drops_default(self, worker_factory, sink):
        """A 'default' entry in the runnable list is never executed."""
        sequencer = RunSequencer(
            worker_factory=worker_factory,
            events=sink,
            groups=("default", "websites", "im"),
        )

        asyncio.run(sequencer.run(RunRequest(target="all")))

        assert worker_factory.groups_run == ["websites", "im"]


class TestStop:
    """Cooperative stop scenarios."""

    def test_stop_while_idle_emits_completed(self, sequencer, sink, worker_factory):
        """stop() while idle: immediate completed, nothing else, flag unset."""
        asyncio.run(sequencer.stop())

        assert sink.events == [Completed()]
        assert sequencer.stop_requested is False
        assert worker_factory.workers == []

    def test_stop_after_second_done_skips_remaining(self, sequencer, sink, worker_factory):
        """Stop right after the 2nd done: exactly 2 groups run, then completed."""

        async def stop_after_two(event):
            if isinstance(event, Done) and sink.count("done") == 2:
                await sequencer.stop()

        sink.on_event = stop_after_two

        asyncio.run(sequencer.run(RunRequest(target="all")))

        assert sink.events == [
            RunningTest("websites"),
            Done("websites"),
            RunningTest("circumvention"),
            Done("circumvention"),
            Completed(),
        ]
        assert worker_factory.groups_run == ["websites", "circumvention"]
        assert sequencer.stop_requested is False

    def test_stop_after_error_skips_remaining(self, sequencer, sink, worker_factory):
        """A stop after an error outcome is honoured the same way."""
        worker_factory.set_behavior("websites", FAIL)

        async def stop_after_error(event):
            if isinstance(event, Error):
                await sequencer.stop()

        sink.on_event = stop_after_error

        asyncio.run(sequencer.run(RunRequest(target="all")))

        assert sink.names == ["running-test", "error", "completed"]
        assert worker_factory.groups_run == ["websites"]

    def test_stop_mid_group_cancels_worker(self, sequencer, sink, worker_factory):
        """Stop during a group: the worker is cancelled and settles first."""
        worker_factory.set_behavior("websites", BLOCK)

        async def scenario():
            task = sequencer.start(RunRequest(target="all"))
            await worker_factory.started_event("websites").wait()

            await sequencer.stop()
            assert sequencer.stop_requested is True
            # completed must wait for the current group to settle
            assert "completed" not in sink.names

            await task

        asyncio.run(scenario())

        assert worker_factory.workers[0].cancelled is True
        assert worker_factory.groups_run == ["websites"]
        assert sink.names == ["running-test", "error", "completed"]

    def test_stop_before_first_group_runs_nothing(self, sequencer, sink, worker_factory):
        """A stop issued right after start(), before the task runs, skips every group."""

        async def scenario():
            task = sequencer.start(RunRequest(target="all"))
            await sequencer.stop()
            await task

        asyncio.run(scenario())

        assert sink.events == [Completed()]
        assert worker_factory.groups_run == []
        assert sequencer.stop_requested is False
        assert sequencer.is_running is False

    def test_next_run_starts_with_clear_stop_flag(self, sequencer, sink, worker_factory):
        """A stop from a previous run does not leak into the next one."""

        async def scenario():
            async def stop_after_first(event):
                if isinstance(event, Done):
                    await sequencer.stop()

            sink.on_event = stop_after_first
            await sequencer.run(RunRequest(target="all"))

            sink.on_event = None
            sink.events.clear()
            await sequencer.run(RunRequest(target="all"))

        asyncio.run(scenario())

        assert sink.count("running-test") == len(ALL)
        assert sink.count("completed") == 1


class TestSingleRunEnforcement:
    """At most one run in flight."""

    def test_start_while_running_is_rejected(self, sequencer, sink, worker_factory):
        """A second start() raises RunInProgressError without events."""
        worker_factory.set_behavior("websites", BLOCK)

        async def scenario():
            task = sequencer.start(RunRequest(target="websites"))
            await worker_factory.started_event("websites").wait()

            with pytest.raises(RunInProgressError) as exc_info:
                sequencer.start(RunRequest(target="im"))
            assert exc_info.value.active_groups == ["websites"]

            await sequencer.stop()
            await task

        asyncio.run(scenario())

        assert worker_factory.groups_run == ["websites"]
        assert sink.count("completed") == 1

    def test_unknown_target_rejected_without_events(self, sequencer, sink):
        """Unknown targets fail before anything is emitted."""
        with pytest.raises(UnknownTestGroupError):
            asyncio.run(sequencer.run(RunRequest(target="nettest-x")))

        assert sink.events == []
        assert sequencer.is_running is False

    def test_can_run_again_after_completion(self, sequencer, sink):
        """The slot is free again once completed was emitted."""

        async def scenario():
            await sequencer.run(RunRequest(target="websites"))
            await sequencer.run(RunRequest(target="im"))

        asyncio.run(scenario())

        assert sink.count("completed") == 2
