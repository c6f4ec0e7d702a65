"""
Channel test helpers.

The channel fixture and its in-process collaborators live in the
top-level conftest, shared with the API tests.
"""

import asyncio


async def collect_until(queue: asyncio.Queue, name: str, timeout: float = 5.0) -> list:
    """Drain events from queue up to and including the first named one."""
    events = []
    while True:
        event = await asyncio.wait_for(queue.get(), timeout)
        events.append(event)
        if event.name == name:
            return events
