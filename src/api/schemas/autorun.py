"""
Autorun API schemas.
"""

from pydantic import BaseModel, Field


class AutorunResultResponse(BaseModel):
    """Result of arming or disarming the autorun task."""

    success: bool = Field(
        ...,
        description="False when the task backend failed or another update was in flight",
    )


class AutorunAckResponse(BaseModel):
    """Acknowledgement of a fire-and-forget autorun message."""

    accepted: bool


class AutorunPrefsResponse(BaseModel):
    """Persisted autorun record."""

    enabled: bool
    remind: bool
    backoff: int = Field(..., ge=0)
    nextBackoff: int = Field(..., ge=0)
    timestamp: int = Field(..., description="Epoch milliseconds of the last shown prompt")
    state: str = Field(..., description="Reminder state of this process")
