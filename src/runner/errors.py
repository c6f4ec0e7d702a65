"""
Runner-specific exceptions.
"""


class RunnerError(Exception):
    """Base exception for all runner errors."""
    pass


class WorkerError(RunnerError):
    """
    Raised when a single test group invocation fails.

    Non-fatal: the sequencer reports it and moves on to the next group.
    """

    def __init__(self, group: str, reason: str, exit_code: int | None = None):
        self.group = group
        self.reason = reason
        self.exit_code = exit_code
        super().__init__(f"Test group '{group}' failed: {reason}")


class RunInProgressError(RunnerError):
    """Raised when a run is requested while another is still in flight."""

    def __init__(self, active_groups: list[str]):
        self.active_groups = active_groups
        super().__init__(
            f"A run is already in progress ({', '.join(active_groups)})"
        )


class UnknownTestGroupError(RunnerError, ValueError):
    """Raised when a run target is not a runnable test group."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Unknown test group: {target!r}")
