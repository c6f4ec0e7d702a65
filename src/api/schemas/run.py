"""
Run control API schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field


class RunStartRequest(BaseModel):
    """Request to run a test group, or every runnable group with 'all'."""

    target: str = Field(
        ...,
        description="Test group id (websites, circumvention, im, middlebox, performance, experimental) or 'all'",
    )
    input_file: Optional[str] = Field(
        default=None,
        description="Path of a URL list for the websites group (see POST /input-file)",
    )


class RunStartResponse(BaseModel):
    """Response from run start."""

    accepted: bool
    target: str
    message: str


class RunStopResponse(BaseModel):
    """Response from run stop."""

    accepted: bool
    was_running: bool


class RunStatusResponse(BaseModel):
    """Current run state."""

    running: bool = Field(..., description="Whether a run is in flight")
    current_group: Optional[str] = Field(
        default=None,
        description="Test group currently executing (null if none)",
    )
    stop_requested: bool = Field(default=False, description="Whether a stop is pending")
