"""
Results API schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ResultListResponse(BaseModel):
    """Result or measurement rows as reported by the measurement engine."""

    rows: List[dict] = Field(default_factory=list)
    summary: dict = Field(default_factory=dict)


class LastResultResponse(BaseModel):
    """Start time of the most recent result for a test group."""

    test_group: str
    last_result: Optional[str] = Field(default=None, description="Start time, null if never run")


class InputFileRequest(BaseModel):
    """Content of an input file (e.g. a custom URL list)."""

    data: str


class InputFileResponse(BaseModel):
    """Location of the written input file."""

    filename: str
