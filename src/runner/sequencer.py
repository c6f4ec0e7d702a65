"""
RunSequencer - runs test groups one at a time against external workers.

Key behaviors:
1. "all" expands to every runnable group; each group gets its own
   worker instance so a per-invocation max-runtime timer never cuts
   later groups short
2. Before each group, a pending stop request ends the loop
3. A failing group is reported and the loop moves on
4. `completed` is emitted exactly once per run, however it ended

Single-run enforcement: at most one run is in flight per sequencer.
The stop flag is cleared when a run is claimed, so a stop() that lands
before the run task gets scheduled still ends the run before its first
group. The worker slot is only mutated by the run loop; stop() only
signals.
"""

import asyncio
import logging
from typing import Optional

from src.infra.events import Completed, Done, Error, EventSink, RunningTest

from .entities import SUPPORTED_TEST_GROUPS, RunRequest, expand_target
from .errors import RunInProgressError
from .worker import TestWorker, WorkerFactory


logger = logging.getLogger(__name__)


class RunSequencer:
    """
    Sequences test group workers and reports lifecycle events.

    Events per run:
        running-test(g), done(g) | error(g, cause) ... completed
    """

    def __init__(
        self,
        worker_factory: WorkerFactory,
        events: EventSink,
        groups: tuple[str, ...] = SUPPORTED_TEST_GROUPS,
    ):
        """
        Initialize RunSequencer.

        Args:
            worker_factory: Creates a worker for (group, input_file)
            events: Sink receiving lifecycle events in order
            groups: Runnable groups used to expand "all"
        """
        self._worker_factory = worker_factory
        self._events = events
        self._groups = groups

        self._running = False
        self._active_groups: list[str] = []
        self._worker: Optional[TestWorker] = None
        self._cancel: Optional[asyncio.Event] = None
        self._stop_requested = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Whether a run is in flight."""
        return self._running

    @property
    def current_worker(self) -> Optional[TestWorker]:
        """The worker of the group currently executing, if any."""
        return self._worker

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @property
    def task(self) -> Optional[asyncio.Task]:
        """The task of the last run started with start()."""
        return self._task

    def _claim(self, request: RunRequest) -> list[str]:
        groups = expand_target(request.target, self._groups)
        if self._running:
            raise RunInProgressError(self._active_groups)
        self._running = True
        self._stop_requested = False
        self._active_groups = groups
        return groups

    def start(self, request: RunRequest) -> asyncio.Task:
        """
        Start a run in the background.

        Returns:
            The asyncio task driving the run

        Raises:
            UnknownTestGroupError: If the target is not runnable
            RunInProgressError: If a run is already in flight
        """
        groups = self._claim(request)
        self._task = asyncio.create_task(self._run_groups(groups, request.input_file))
        return self._task

    async def run(self, request: RunRequest) -> None:
        """
        Run to completion in the caller's task.

        Raises:
            UnknownTestGroupError: If the target is not runnable
            RunInProgressError: If a run is already in flight
        """
        groups = self._claim(request)
        await self._run_groups(groups, request.input_file)

    async def _run_groups(self, groups: list[str], input_file: Optional[str]) -> None:
        logger.info(f"Run started: {', '.join(groups)}")
        try:
            for group in groups:
                if self._stop_requested:
                    self._stop_requested = False
                    logger.info(f"Stop requested, skipping remaining groups before {group}")
                    break
                await self._run_one(group, input_file)
        finally:
            await self._events.publish(Completed())
            self._worker = None
            self._cancel = None
            self._active_groups = []
            self._running = False
            logger.info("Run completed")

    async def _run_one(self, group: str, input_file: Optional[str]) -> None:
        self._cancel = asyncio.Event()
        await self._events.publish(RunningTest(group))
        try:
            self._worker = self._worker_factory(group, input_file)
            await self._worker.run(self._cancel)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Test group {group} failed: {e}")
            await self._events.publish(Error(group, str(e)))
        else:
            await self._events.publish(Done(group))

    async def stop(self) -> None:
        """
        Request the current run to stop.

        Idle: emits `completed` immediately and leaves the stop flag unset.
        Running: signals the current worker to terminate and sets the
        stop flag; remaining groups are skipped once it settles.
        """
        if not self._running:
            self._stop_requested = False
            logger.debug("Stop requested while idle")
            await self._events.publish(Completed())
            return

        logger.info("Stop requested, terminating current test group")
        self._stop_requested = True
        if self._cancel is not None:
            self._cancel.set()
