"""
API Schemas package.

Pydantic models for request/response validation.
"""

from .run import (
    RunStartRequest,
    RunStartResponse,
    RunStopResponse,
    RunStatusResponse,
)
from .autorun import (
    AutorunResultResponse,
    AutorunAckResponse,
    AutorunPrefsResponse,
)
from .store import (
    ConfigSetRequest,
    ConfigValueResponse,
    PrefsSaveRequest,
    PrefsValueResponse,
    PrefsSaveResponse,
)
from .results import (
    ResultListResponse,
    LastResultResponse,
    InputFileRequest,
    InputFileResponse,
)

__all__ = [
    "RunStartRequest",
    "RunStartResponse",
    "RunStopResponse",
    "RunStatusResponse",
    "AutorunResultResponse",
    "AutorunAckResponse",
    "AutorunPrefsResponse",
    "ConfigSetRequest",
    "ConfigValueResponse",
    "PrefsSaveRequest",
    "PrefsValueResponse",
    "PrefsSaveResponse",
    "ResultListResponse",
    "LastResultResponse",
    "InputFileRequest",
    "InputFileResponse",
]
