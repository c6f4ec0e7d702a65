"""
Run router: start/stop test group runs and stream lifecycle events.

Events are pushed over the /events WebSocket as JSON objects:
    {"event": "running-test", "group": "websites"}
    {"event": "done", "group": "websites"}
    {"event": "error", "group": "im", "cause": "..."}
    {"event": "completed"}
    {"event": "show-prompt"}
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ..schemas.run import (
    RunStartRequest,
    RunStartResponse,
    RunStopResponse,
    RunStatusResponse,
)
from .._channel_state import get_control_channel
from ..dependencies.auth import is_authorized


logger = logging.getLogger(__name__)

router = APIRouter()
events_router = APIRouter()


@router.post("/run", response_model=RunStartResponse, status_code=202)
async def start_run(request: RunStartRequest):
    """
    Start running a test group, or all runnable groups with target 'all'.

    Non-blocking: progress is reported on the /events WebSocket.
    Rejected (accepted=false) when a run is already in flight or the
    target is unknown.
    """
    channel = get_control_channel()

    accepted = await channel.send(
        "run", {"target": request.target, "inputFile": request.input_file}
    )

    if accepted:
        message = f"Run of '{request.target}' started"
    elif channel.sequencer.is_running:
        message = "A run is already in progress"
    else:
        message = f"Unknown test group: {request.target}"

    return RunStartResponse(accepted=accepted, target=request.target, message=message)


@router.post("/stop", response_model=RunStopResponse)
async def stop_run():
    """
    Stop the current run.

    The current test group is asked to terminate; remaining groups are
    skipped. When idle, a 'completed' event is emitted immediately.
    """
    channel = get_control_channel()
    was_running = channel.sequencer.is_running
    accepted = await channel.send("stop")
    return RunStopResponse(accepted=accepted, was_running=was_running)


@router.get("/run/status", response_model=RunStatusResponse)
async def run_status():
    """Get the current run state."""
    sequencer = get_control_channel().sequencer
    worker = sequencer.current_worker
    return RunStatusResponse(
        running=sequencer.is_running,
        current_group=worker.group if worker is not None else None,
        stop_requested=sequencer.stop_requested,
    )


@events_router.websocket("/events")
async def events_stream(websocket: WebSocket):
    """Push every lifecycle event to the client, in emission order."""
    if not is_authorized(websocket.headers):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    channel = get_control_channel()
    queue = channel.subscribe()
    await websocket.accept()

    async def forward_events() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(event.to_dict())

    forward_task = asyncio.create_task(forward_events())
    try:
        # Inbound frames are ignored; receiving detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Event stream client disconnected")
    finally:
        forward_task.cancel()
        channel.unsubscribe(queue)
