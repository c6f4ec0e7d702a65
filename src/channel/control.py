"""
ControlChannel - the message boundary between callers and the core.

Three kinds of messages:
- requests (async, answered): config.get, config.set, autorun.schedule,
  autorun.disable, list-results, results.last, fs.write
- fire-and-forget messages (async, no answer beyond "accepted"): run,
  stop, autorun.remind-later, autorun.cancel, autorun.maybe-remind
- synchronous requests: prefs.get, prefs.save

Lifecycle events (running-test, done, error, completed, show-prompt)
flow out through the channel's EventBus.

Failures of the core never escape as unhandled exceptions:
- runs: failures become events; rejected runs return False
- autorun messages: persistence failures return False
- reads (config.get, list-results, results.last, prefs.get): None
- writes (config.set, fs.write, prefs.save): the error message string
Malformed messages raise ChannelError subclasses for the transport to
reject; config.get and config.set reject malformed or scalar-crossing
dotted keys the same way.
"""

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from src.autorun import (
    AUTORUN_DEFAULTS,
    AUTORUN_KEY,
    AutorunPreferences,
    AutorunRecordError,
    ReminderScheduler,
    UnsupportedPlatformError,
    get_autorun_task,
)
from src.config import ConfigAccessor, ConfigError, ConfigPathError, ConfigReadError
from src.infra import settings
from src.infra.events import EventBus
from src.infra.prefs_store import PersistenceError, PreferenceStore
from src.runner import (
    RunInProgressError,
    RunRequest,
    RunSequencer,
    UnknownTestGroupError,
    ooniprobe_worker_factory,
)

from .errors import InvalidPayloadError, UnknownOperationError
from .results import OoniprobeResults, ResultsError, ResultsSource, last_start_time


logger = logging.getLogger(__name__)

# Reading or writing the autorun record
_AUTORUN_FAILURES = (PersistenceError, AutorunRecordError)


class ControlChannel:
    """
    Routes named operations to RunSequencer, ReminderScheduler,
    ConfigAccessor, the preferences store and the results source.
    """

    def __init__(
        self,
        sequencer: RunSequencer,
        reminder: ReminderScheduler,
        config: ConfigAccessor,
        store: PreferenceStore,
        results: ResultsSource,
        events: EventBus,
        input_dir: Path,
    ):
        self.sequencer = sequencer
        self.reminder = reminder
        self.config = config
        self.store = store
        self.results = results
        self.events = events
        self.input_dir = Path(input_dir)

        self._requests: dict[str, Callable[[Any], Awaitable[Any]]] = {
            "config.get": self._config_get,
            "config.set": self._config_set,
            "autorun.schedule": self._autorun_schedule,
            "autorun.disable": self._autorun_disable,
            "list-results": self._list_results,
            "results.last": self._last_result,
            "fs.write": self._write_input_file,
        }
        self._messages: dict[str, Callable[[Any], Awaitable[bool]]] = {
            "run": self._run,
            "stop": self._stop,
            "autorun.remind-later": self._remind_later,
            "autorun.cancel": self._autorun_cancel,
            "autorun.maybe-remind": self._maybe_remind,
        }
        self._sync_requests: dict[str, Callable[[Any], Any]] = {
            "prefs.get": self._prefs_get,
            "prefs.save": self._prefs_save,
        }

    @classmethod
    def create(
        cls,
        platform: str = sys.platform,
        events: Optional[EventBus] = None,
    ) -> "ControlChannel":
        """
        Build a channel wired to the ooniprobe CLI and the configured paths.

        Args:
            platform: Host platform identifier (sys.platform style)
            events: Event bus to publish on (a new one by default)
        """
        events = events or EventBus()
        binary = settings.get_ooniprobe_binary()
        autorun_config = settings.get_autorun_config()

        store = PreferenceStore(
            settings.get_preferences_path(),
            defaults={AUTORUN_KEY: AUTORUN_DEFAULTS},
        )

        try:
            task = get_autorun_task(
                platform,
                binary=binary,
                label=autorun_config["label"],
                interval_seconds=autorun_config["interval_seconds"],
            )
        except UnsupportedPlatformError as e:
            logger.info(f"Autorun unavailable: {e}")
            task = None

        sequencer = RunSequencer(
            worker_factory=ooniprobe_worker_factory(binary, settings.get_runs_dir()),
            events=events,
        )
        reminder = ReminderScheduler(
            prefs=AutorunPreferences(store),
            events=events,
            task=task,
            platform=platform,
        )

        return cls(
            sequencer=sequencer,
            reminder=reminder,
            config=ConfigAccessor(settings.get_ooni_config_path()),
            store=store,
            results=OoniprobeResults(binary),
            events=events,
            input_dir=settings.get_input_dir(),
        )

    # =========================================================================
    # Entry Points
    # =========================================================================

    @property
    def operations(self) -> dict[str, list[str]]:
        """Operation names by message kind."""
        return {
            "request": sorted(self._requests),
            "message": sorted(self._messages),
            "sync": sorted(self._sync_requests),
        }

    async def request(self, operation: str, payload: Any = None) -> Any:
        """
        Send a request and return its response.

        Raises:
            UnknownOperationError: If operation is not a request
            InvalidPayloadError: If the payload is malformed
        """
        handler = self._requests.get(operation)
        if handler is None:
            raise UnknownOperationError(operation, "request")
        return await handler(payload)

    async def send(self, operation: str, payload: Any = None) -> bool:
        """
        Send a fire-and-forget message.

        Returns:
            True if the message was accepted

        Raises:
            UnknownOperationError: If operation is not a message
        """
        handler = self._messages.get(operation)
        if handler is None:
            raise UnknownOperationError(operation, "message")
        return await handler(payload)

    def request_sync(self, operation: str, payload: Any = None) -> Any:
        """
        Send a synchronous request.

        Raises:
            UnknownOperationError: If operation is not a synchronous request
        """
        handler = self._sync_requests.get(operation)
        if handler is None:
            raise UnknownOperationError(operation, "sync")
        return handler(payload)

    def subscribe(self) -> asyncio.Queue:
        """Return a queue receiving every event published from now on."""
        return self.events.get_queue()

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self.events.unsubscribe(queue)

    async def shutdown(self) -> None:
        """Cancel the prompt timer and stop any run in flight."""
        self.reminder.close()
        if self.sequencer.is_running:
            await self.sequencer.stop()
            task = self.sequencer.task
            if task is not None:
                await task

    # =========================================================================
    # Runs
    # =========================================================================

    async def _run(self, payload: Any) -> bool:
        request = RunRequest.from_dict(_require_dict("run", payload))
        try:
            self.sequencer.start(request)
        except UnknownTestGroupError as e:
            logger.warning(f"Run rejected: {e}")
            return False
        except RunInProgressError as e:
            logger.warning(f"Run rejected: {e}")
            return False
        return True

    async def _stop(self, payload: Any) -> bool:
        await self.sequencer.stop()
        return True

    # =========================================================================
    # Autorun
    # =========================================================================

    async def _autorun_schedule(self, payload: Any) -> bool:
        return await self.reminder.schedule()

    async def _autorun_disable(self, payload: Any) -> bool:
        return await self.reminder.disable()

    async def _remind_later(self, payload: Any) -> bool:
        try:
            self.reminder.remind_later()
        except _AUTORUN_FAILURES as e:
            logger.error(f"Could not persist autorun backoff: {e}")
            return False
        return True

    async def _autorun_cancel(self, payload: Any) -> bool:
        try:
            self.reminder.cancel()
        except _AUTORUN_FAILURES as e:
            logger.error(f"Could not persist autorun cancellation: {e}")
            return False
        return True

    async def _maybe_remind(self, payload: Any) -> bool:
        try:
            self.reminder.maybe_remind()
        except _AUTORUN_FAILURES as e:
            logger.error(f"Autorun reminder skipped: {e}")
            return False
        return True

    # =========================================================================
    # Configuration
    # =========================================================================

    async def _config_get(self, payload: Any) -> Any:
        key = payload.get("key") if isinstance(payload, dict) else payload
        try:
            value = await self.config.get(key)
        except ConfigPathError as e:
            raise InvalidPayloadError("config.get", str(e)) from e
        except ConfigReadError as e:
            logger.error(e)
            return None
        logger.debug(f"config.get {key}: {value}")
        return value

    async def _config_set(self, payload: Any) -> dict | str:
        data = _require_dict("config.set", payload)
        if "key" not in data or "value" not in data:
            raise InvalidPayloadError("config.set", "'key' and 'value' are required")
        try:
            return await self.config.set(data["key"], data["value"])
        except ConfigPathError as e:
            raise InvalidPayloadError("config.set", str(e)) from e
        except ConfigError as e:
            logger.error(e)
            return str(e)

    # =========================================================================
    # Results
    # =========================================================================

    async def _list_results(self, payload: Any) -> Optional[dict]:
        result_id = payload.get("resultId") if isinstance(payload, dict) else payload
        try:
            if result_id:
                return await self.results.list_measurements(str(result_id))
            return await self.results.list_results()
        except ResultsError as e:
            logger.error(f"Could not list results: {e}")
            return None

    async def _last_result(self, payload: Any) -> Optional[str]:
        data = _require_dict("results.last", payload)
        test_group = data.get("testGroupName", "all")
        last_tested = None
        try:
            last_tested = last_start_time(await self.results.list_results(), test_group)
        except ResultsError as e:
            logger.error(e)
        logger.debug(f"Last result for {test_group}: {last_tested}")
        return last_tested

    async def _write_input_file(self, payload: Any) -> dict | str:
        data = _require_dict("fs.write", payload)
        if "data" not in data:
            raise InvalidPayloadError("fs.write", "'data' is required")

        def write() -> Path:
            self.input_dir.mkdir(parents=True, exist_ok=True)
            path = self.input_dir / f"{int(time.time() * 1000)}"
            path.write_text(str(data["data"]), encoding="utf-8")
            return path

        try:
            path = await asyncio.to_thread(write)
        except OSError as e:
            logger.error(f"Could not write input file: {e}")
            return str(e)
        return {"filename": str(path)}

    # =========================================================================
    # Preferences (synchronous)
    # =========================================================================

    def _prefs_get(self, payload: Any) -> Any:
        key = payload.get("key") if isinstance(payload, dict) else payload
        try:
            value = self.store.get(key)
        except (PersistenceError, ConfigPathError) as e:
            logger.error(e)
            return None
        logger.debug(f"prefs.get {key}: {value}")
        return value

    def _prefs_save(self, payload: Any) -> bool | str:
        data = _require_dict("prefs.save", payload)
        if "key" not in data:
            raise InvalidPayloadError("prefs.save", "'key' is required")
        try:
            self.store.set(data["key"], data.get("value"))
        except (PersistenceError, ValueError) as e:
            logger.error(e)
            return str(e)
        return True


def _require_dict(operation: str, payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise InvalidPayloadError(operation, "payload must be an object")
    return payload
