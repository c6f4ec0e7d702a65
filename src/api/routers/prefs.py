"""
Preferences router: synchronous dotted-key access to the preferences document.
"""

from fastapi import APIRouter

from ..schemas.store import PrefsSaveRequest, PrefsSaveResponse, PrefsValueResponse
from .._channel_state import get_control_channel


router = APIRouter()


@router.get("/{key}", response_model=PrefsValueResponse)
async def get_pref(key: str):
    """Get a preference; value is null when absent or unreadable."""
    value = get_control_channel().request_sync("prefs.get", key)
    return PrefsValueResponse(key=key, value=value)


@router.put("", response_model=PrefsSaveResponse)
async def save_pref(request: PrefsSaveRequest):
    """Save a preference; failures are reported in 'error'."""
    result = get_control_channel().request_sync(
        "prefs.save", {"key": request.key, "value": request.value}
    )
    if result is True:
        return PrefsSaveResponse(success=True)
    return PrefsSaveResponse(success=False, error=str(result))
