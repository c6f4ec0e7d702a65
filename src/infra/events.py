"""
Typed lifecycle events and the in-memory event bus that carries them.

Events are published in emission order to every subscriber queue.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, ClassVar, Protocol, Union


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunningTest:
    """A test group has been handed to its worker."""

    name: ClassVar[str] = "running-test"
    group: str

    def to_dict(self) -> dict:
        return {"event": self.name, "group": self.group}


@dataclass(frozen=True)
class Done:
    """A test group's worker completed successfully."""

    name: ClassVar[str] = "done"
    group: str

    def to_dict(self) -> dict:
        return {"event": self.name, "group": self.group}


@dataclass(frozen=True)
class Error:
    """A test group's worker failed; the run continues."""

    name: ClassVar[str] = "error"
    group: str
    cause: str

    def to_dict(self) -> dict:
        return {"event": self.name, "group": self.group, "cause": self.cause}


@dataclass(frozen=True)
class Completed:
    """The run sequence has ended (exhausted, stopped, or idle stop)."""

    name: ClassVar[str] = "completed"

    def to_dict(self) -> dict:
        return {"event": self.name}


@dataclass(frozen=True)
class ShowPrompt:
    """The autorun prompt should be shown to the user."""

    name: ClassVar[str] = "show-prompt"

    def to_dict(self) -> dict:
        return {"event": self.name}


Event = Union[RunningTest, Done, Error, Completed, ShowPrompt]


class EventSink(Protocol):
    """Anything events can be published to."""

    async def publish(self, event: Event) -> None:
        ...


class EventBus:
    """Async pub/sub bus forwarding events to subscriber queues."""

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: Event) -> None:
        """Publish an event to every current subscriber."""
        logger.debug(f"event {event.name}: {event.to_dict()}")
        for queue in list(self._subscribers):
            queue.put_nowait(event)

    def get_queue(self) -> asyncio.Queue:
        """Register and return a queue that receives every later event."""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    async def subscribe(self) -> AsyncIterator[Event]:
        """Yield events until the iterator is closed."""
        queue = self.get_queue()
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(queue)
