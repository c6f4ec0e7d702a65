"""
Autorun router: reminder policy messages and task scheduling.
"""

from fastapi import APIRouter, HTTPException

from src.autorun import AutorunRecordError
from src.infra.prefs_store import PersistenceError

from ..schemas.autorun import (
    AutorunAckResponse,
    AutorunPrefsResponse,
    AutorunResultResponse,
)
from .._channel_state import get_control_channel


router = APIRouter()


@router.get("", response_model=AutorunPrefsResponse)
async def get_autorun():
    """Get the persisted autorun record and the reminder state."""
    channel = get_control_channel()
    try:
        prefs = channel.reminder.prefs.load()
    except (PersistenceError, AutorunRecordError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    return AutorunPrefsResponse(**prefs.to_dict(), state=channel.reminder.state.value)


@router.post("/schedule", response_model=AutorunResultResponse)
async def schedule_autorun():
    """
    Arm the autorun task.

    success=false means the state is unchanged (backend failure, or
    another schedule/disable in flight).
    """
    success = await get_control_channel().request("autorun.schedule")
    return AutorunResultResponse(success=success)


@router.post("/disable", response_model=AutorunResultResponse)
async def disable_autorun():
    """Disarm the autorun task."""
    success = await get_control_channel().request("autorun.disable")
    return AutorunResultResponse(success=success)


@router.post("/remind-later", response_model=AutorunAckResponse, status_code=202)
async def remind_later():
    """Back off the autorun reminder."""
    accepted = await get_control_channel().send("autorun.remind-later")
    return AutorunAckResponse(accepted=accepted)


@router.post("/cancel", response_model=AutorunAckResponse, status_code=202)
async def cancel_autorun():
    """Never remind again; autorun stays disabled."""
    accepted = await get_control_channel().send("autorun.cancel")
    return AutorunAckResponse(accepted=accepted)


@router.post("/maybe-remind", response_model=AutorunAckResponse, status_code=202)
async def maybe_remind():
    """
    Evaluate the reminder policy.

    May emit a 'show-prompt' event on /events after a short delay.
    """
    accepted = await get_control_channel().send("autorun.maybe-remind")
    return AutorunAckResponse(accepted=accepted)
