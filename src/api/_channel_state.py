"""
Control channel state management for API integration.

Provides singleton access to the ControlChannel instance.
Initialized during FastAPI lifespan.

Usage:
    from ._channel_state import get_control_channel, init_control_channel

    # In lifespan:
    init_control_channel()

    # In routers:
    channel = get_control_channel()
"""

import sys
from typing import Optional

from src.channel import ControlChannel


# Global control channel instance
_control_channel: Optional[ControlChannel] = None


def init_control_channel(platform: str = sys.platform) -> ControlChannel:
    """
    Initialize the control channel singleton.

    Called during FastAPI lifespan startup. Safe to call twice.

    Args:
        platform: Host platform identifier (sys.platform style)

    Returns:
        Initialized ControlChannel
    """
    global _control_channel

    if _control_channel is not None:
        return _control_channel

    _control_channel = ControlChannel.create(platform=platform)
    return _control_channel


def set_control_channel(channel: Optional[ControlChannel]) -> None:
    """Install a prebuilt channel (tests, embedding)."""
    global _control_channel
    _control_channel = channel


def get_control_channel() -> ControlChannel:
    """
    Get the control channel singleton.

    Raises:
        RuntimeError: If the channel is not initialized
    """
    if _control_channel is None:
        raise RuntimeError(
            "Control channel not initialized. "
            "Ensure init_control_channel() is called during startup."
        )

    return _control_channel


async def shutdown_control_channel() -> None:
    """
    Shutdown the control channel.

    Called during FastAPI lifespan shutdown. Stops a run in flight and
    cancels a pending autorun prompt.
    """
    global _control_channel

    if _control_channel is not None:
        await _control_channel.shutdown()
        _control_channel = None
