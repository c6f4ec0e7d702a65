"""
Configuration and preferences API schemas.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ConfigSetRequest(BaseModel):
    """Request to set a configuration value by dotted key."""

    key: str = Field(..., min_length=1, description="Dotted path, e.g. 'sharing.upload_results'")
    value: Any = Field(..., description="New value")


class ConfigValueResponse(BaseModel):
    """A configuration value."""

    key: str
    value: Any = None


class PrefsSaveRequest(BaseModel):
    """Request to save a preference by dotted key."""

    key: str = Field(..., min_length=1)
    value: Any = None


class PrefsValueResponse(BaseModel):
    """A preference value."""

    key: str
    value: Any = None


class PrefsSaveResponse(BaseModel):
    """Result of saving a preference."""

    success: bool
    error: Optional[str] = None
