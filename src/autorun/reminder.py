"""
ReminderScheduler - decides when to prompt the user about autorun.

Reminders back off: each "remind me later" widens the window of
maybe_remind() calls that are skipped before the prompt can be shown
again, up to MAX_BACKOFF. On top of that, prompts are never shown
less than MIN_TIME_SINCE_LAST_REMINDER apart, and are delayed by
SHOW_PROMPT_AFTER_DELAY from the triggering call.

State machine:
    NO_PROMPT_PENDING -> PROMPT_TIMER_ARMED -> PROMPT_SHOWN
"""

import asyncio
import logging
import math
import sys
import time
from enum import Enum
from typing import Callable, Optional

from src.infra.events import EventSink, ShowPrompt

from .errors import SchedulingError
from .prefs import AutorunPreferences
from .task import AutorunTask, is_autorun_supported


logger = logging.getLogger(__name__)

MAX_BACKOFF = 42
MIN_TIME_SINCE_LAST_REMINDER = 10 * 60 * 1000  # ms
SHOW_PROMPT_AFTER_DELAY = 10.0  # seconds


class ReminderState(str, Enum):
    """Prompt lifecycle states."""

    NO_PROMPT_PENDING = "NO_PROMPT_PENDING"
    PROMPT_TIMER_ARMED = "PROMPT_TIMER_ARMED"
    PROMPT_SHOWN = "PROMPT_SHOWN"


def _now_ms() -> int:
    return int(time.time() * 1000)


class ReminderScheduler:
    """
    Gates and times the autorun prompt, and arms/disarms the autorun task.

    Two independent in-flight guards:
    - prompt guard: at most one prompt timer armed at a time
    - task guard: schedule() and disable() never run concurrently;
      a contending call returns False without side effects
    """

    def __init__(
        self,
        prefs: AutorunPreferences,
        events: EventSink,
        task: Optional[AutorunTask] = None,
        platform: str = sys.platform,
        clock: Callable[[], int] = _now_ms,
        prompt_delay: float = SHOW_PROMPT_AFTER_DELAY,
    ):
        """
        Initialize ReminderScheduler.

        Args:
            prefs: Persisted autorun record
            events: Sink receiving ShowPrompt
            task: OS-level autorun backend (None where unavailable)
            platform: sys.platform-style identifier of the host
            clock: Returns epoch milliseconds
            prompt_delay: Seconds between arming and showing the prompt
        """
        self.prefs = prefs
        self._events = events
        self._task = task
        self.platform = platform
        self._clock = clock
        self.prompt_delay = prompt_delay

        self._state = ReminderState.NO_PROMPT_PENDING
        self._prompt_waiting = False
        self._prompt_timer: Optional[asyncio.Task] = None
        self._task_updating = False

    @property
    def state(self) -> ReminderState:
        return self._state

    @property
    def prompt_timer(self) -> Optional[asyncio.Task]:
        """The armed prompt timer, if any."""
        return self._prompt_timer

    # =========================================================================
    # Reminder Policy
    # =========================================================================

    def maybe_remind(self) -> bool:
        """
        Arm the prompt timer if every gate passes.

        Must be called from a running event loop.

        Returns:
            True if this call armed a timer
        """
        if not is_autorun_supported(self.platform):
            logger.debug("Skip autorun reminder: only available on macOS and Windows.")
            return False

        prefs = self.prefs.load()
        if prefs.remind is False or prefs.enabled is True:
            logger.debug("Skip autorun reminder: already enabled or explicitly cancelled.")
            return False

        if prefs.backoff < prefs.next_backoff:
            logger.debug(
                f"Skip autorun reminder. Backing off for {prefs.next_backoff - prefs.backoff} more times."
            )
            self.prefs.save(backoff=prefs.backoff + 1)
            return False

        elapsed = self._clock() - prefs.timestamp
        if elapsed < MIN_TIME_SINCE_LAST_REMINDER:
            logger.debug(
                f"Skip autorun reminder. It has only been {math.ceil(elapsed / 60000)} minutes."
            )
            return False

        if self._prompt_waiting:
            return False

        self._prompt_waiting = True
        self._state = ReminderState.PROMPT_TIMER_ARMED
        self._prompt_timer = asyncio.create_task(self._show_prompt_later())
        logger.debug(f"Autorun prompt armed, showing in {self.prompt_delay}s")
        return True

    async def _show_prompt_later(self) -> None:
        try:
            await asyncio.sleep(self.prompt_delay)
            await self._events.publish(ShowPrompt())
            self._state = ReminderState.PROMPT_SHOWN
            self.prefs.save(timestamp=self._clock())
        except asyncio.CancelledError:
            self._state = ReminderState.NO_PROMPT_PENDING
            raise
        except Exception:
            logger.exception("Autorun prompt timer failed")
        finally:
            self._prompt_waiting = False

    def remind_later(self) -> None:
        """Widen the backoff window and restart counting."""
        prefs = self.prefs.load()
        next_backoff = min(prefs.backoff + prefs.next_backoff, MAX_BACKOFF)
        self.prefs.save(next_backoff=next_backoff, backoff=0)
        self._state = ReminderState.NO_PROMPT_PENDING
        logger.debug(f"Autorun reminder backed off {next_backoff} times.")

    def cancel(self) -> None:
        """Never remind again; autorun stays off."""
        self.prefs.save(remind=False, enabled=False)
        self._state = ReminderState.NO_PROMPT_PENDING
        logger.debug("Autorun cancelled.")

    def close(self) -> None:
        """Cancel a pending prompt timer."""
        if self._prompt_timer is not None and not self._prompt_timer.done():
            self._prompt_timer.cancel()
            # A timer cancelled before its first step never reaches its finally
            self._prompt_waiting = False
            self._state = ReminderState.NO_PROMPT_PENDING

    # =========================================================================
    # Autorun Task
    # =========================================================================

    async def schedule(self) -> bool:
        """
        Arm the autorun task and record it as enabled.

        Returns:
            True on success; False on contention or any failure
        """
        return await self._update_task("schedule", enabled=True)

    async def disable(self) -> bool:
        """
        Disarm the autorun task and record it as disabled.

        Returns:
            True on success; False on contention or any failure
        """
        return await self._update_task("disable", enabled=False)

    async def _update_task(self, action: str, enabled: bool) -> bool:
        if self._task_updating:
            logger.debug(f"Autorun {action} skipped: another update is in flight")
            return False

        self._task_updating = True
        try:
            if self._task is None:
                raise SchedulingError(action, f"no autorun backend for '{self.platform}'")
            if enabled:
                await self._task.schedule()
            else:
                await self._task.disable()
            self.prefs.save(remind=False, enabled=enabled)
            logger.debug(f"Autorun {'scheduled' if enabled else 'disabled'}.")
            return True
        except Exception as e:
            logger.error(f"Autorun could not be {'scheduled' if enabled else 'disabled'}. {e}")
            return False
        finally:
            self._task_updating = False
