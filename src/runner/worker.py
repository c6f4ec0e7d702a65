"""
Test workers: the external units that execute one test group.

What a worker MUST do:
- Run exactly one test group per instance
- Watch the cancel token and settle (exit, success or failure) once it is set
- Raise WorkerError on failure

What a worker MUST NOT do:
- Decide which group runs next (RunSequencer's responsibility)
- Emit lifecycle events
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .entities import TestGroup
from .errors import WorkerError


logger = logging.getLogger(__name__)

# Grace period between SIGTERM and SIGKILL when a run is cancelled
TERMINATE_GRACE_SECONDS = 10.0


class TestWorker(ABC):
    """
    Abstract base class for test group workers.

    The worker owns its own runtime budget; callers never time it out.
    """

    __test__ = False

    def __init__(self, group: str, input_file: Optional[str] = None):
        self.group = group
        self.input_file = input_file

    @abstractmethod
    async def run(self, cancel: asyncio.Event) -> None:
        """
        Run the test group to completion.

        Args:
            cancel: Cooperative cancellation token; once set the worker
                must stop its work and return or raise

        Raises:
            WorkerError: If the group failed or was terminated
        """
        ...


WorkerFactory = Callable[[str, Optional[str]], TestWorker]


class OoniprobeWorker(TestWorker):
    """
    Runs one test group through the ooniprobe CLI.

    Command: ooniprobe --batch run <group> [--input-file <path>]
    Output goes to a per-run log file under the runs directory.
    """

    def __init__(
        self,
        group: str,
        input_file: Optional[str] = None,
        binary: str = "ooniprobe",
        runs_dir: Optional[Path] = None,
        terminate_grace: float = TERMINATE_GRACE_SECONDS,
    ):
        super().__init__(group, input_file)
        self.binary = binary
        self.runs_dir = runs_dir
        self.terminate_grace = terminate_grace
        self._process: Optional[asyncio.subprocess.Process] = None
        self.log_path: Optional[Path] = None

    def build_command(self) -> list[str]:
        """Build the ooniprobe command line for this group."""
        cmd = [self.binary, "--batch", "run", self.group]
        # Only the websites group takes a URL list
        if self.input_file and self.group == TestGroup.WEBSITES.value:
            cmd.extend(["--input-file", self.input_file])
        return cmd

    def _open_log(self):
        if self.runs_dir is None:
            return None
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_path = self.runs_dir / f"{self.group}_{stamp}.log"
        return open(self.log_path, "w", encoding="utf-8")

    async def run(self, cancel: asyncio.Event) -> None:
        cmd = self.build_command()
        logger.info(f"Running test group {self.group}: {' '.join(cmd)}")

        log_file = self._open_log()
        try:
            try:
                self._process = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=log_file if log_file else asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.STDOUT,
                )
            except OSError as e:
                raise WorkerError(self.group, f"cannot start {self.binary}: {e}") from e

            exit_code = await self._wait_or_cancel(cancel)
        finally:
            self._process = None
            if log_file:
                log_file.close()

        if cancel.is_set():
            raise WorkerError(self.group, "terminated by stop request", exit_code)
        if exit_code != 0:
            raise WorkerError(
                self.group,
                self._read_error_from_log() or f"process exited with code {exit_code}",
                exit_code,
            )
        logger.info(f"Test group {self.group} finished")

    async def _wait_or_cancel(self, cancel: asyncio.Event) -> int:
        process = self._process
        wait_task = asyncio.create_task(process.wait())
        cancel_task = asyncio.create_task(cancel.wait())
        try:
            await asyncio.wait(
                {wait_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()

        if not wait_task.done():
            logger.info(f"Terminating test group {self.group} (pid={process.pid})")
            self.kill()
            try:
                await asyncio.wait_for(asyncio.shield(wait_task), self.terminate_grace)
            except asyncio.TimeoutError:
                logger.warning(f"Test group {self.group} ignored SIGTERM, killing")
                process.kill()
        return await wait_task

    def kill(self) -> bool:
        """Ask the running ooniprobe process to terminate."""
        if self._process is None or self._process.returncode is not None:
            return False
        try:
            self._process.terminate()
            return True
        except ProcessLookupError:
            return False

    def _read_error_from_log(self) -> Optional[str]:
        """Read last error lines from the run log."""
        if self.log_path is None:
            return None
        try:
            with open(self.log_path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError:
            return None
        error_lines = [line.strip() for line in lines[-10:] if line.strip()]
        if error_lines:
            return "\n".join(error_lines[-3:])
        return None


def ooniprobe_worker_factory(binary: str, runs_dir: Optional[Path] = None) -> WorkerFactory:
    """Return a factory creating one OoniprobeWorker per group invocation."""

    def factory(group: str, input_file: Optional[str] = None) -> TestWorker:
        return OoniprobeWorker(group, input_file, binary=binary, runs_dir=runs_dir)

    return factory
