"""
Config router: dotted-path access to the measurement engine configuration.
"""

from fastapi import APIRouter, HTTPException

from src.channel import InvalidPayloadError

from ..schemas.store import ConfigSetRequest, ConfigValueResponse
from .._channel_state import get_control_channel


router = APIRouter()


@router.get("")
async def get_config_tree():
    """Get the whole configuration tree."""
    tree = await get_control_channel().request("config.get")
    return tree if tree is not None else {}


@router.get("/{key}", response_model=ConfigValueResponse)
async def get_config_value(key: str):
    """Get the value at a dotted key (e.g. 'sharing.upload_results')."""
    try:
        value = await get_control_channel().request("config.get", key)
    except InvalidPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if value is None:
        raise HTTPException(status_code=404, detail=f"Config key not found: {key}")
    return ConfigValueResponse(key=key, value=value)


@router.put("")
async def set_config_value(request: ConfigSetRequest):
    """
    Set the value at a dotted key.

    Intermediate sections are created as needed. Returns the updated tree.
    """
    try:
        result = await get_control_channel().request(
            "config.set", {"key": request.key, "value": request.value}
        )
    except InvalidPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if isinstance(result, str):
        raise HTTPException(status_code=500, detail=f"Failed to update config: {result}")
    return result
