"""
Test group runner.

Sequences externally executed test groups with cooperative stop.
"""

from .entities import (
    ALL_GROUPS,
    SUPPORTED_TEST_GROUPS,
    RunRequest,
    TestGroup,
    expand_target,
)
from .errors import (
    RunnerError,
    RunInProgressError,
    UnknownTestGroupError,
    WorkerError,
)
from .sequencer import RunSequencer
from .worker import OoniprobeWorker, TestWorker, WorkerFactory, ooniprobe_worker_factory

__all__ = [
    # Entities
    "ALL_GROUPS",
    "SUPPORTED_TEST_GROUPS",
    "RunRequest",
    "TestGroup",
    "expand_target",
    # Errors
    "RunnerError",
    "RunInProgressError",
    "UnknownTestGroupError",
    "WorkerError",
    # Sequencer
    "RunSequencer",
    # Workers
    "OoniprobeWorker",
    "TestWorker",
    "WorkerFactory",
    "ooniprobe_worker_factory",
]
