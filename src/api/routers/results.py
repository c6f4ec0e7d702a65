"""
Results router: read-only access to measurement results, plus input files.
"""

from fastapi import APIRouter, HTTPException, Query

from ..schemas.results import (
    InputFileRequest,
    InputFileResponse,
    LastResultResponse,
    ResultListResponse,
)
from .._channel_state import get_control_channel


router = APIRouter()


@router.get("/results", response_model=ResultListResponse)
async def list_results():
    """List stored results, oldest first."""
    listing = await get_control_channel().request("list-results")
    if listing is None:
        raise HTTPException(status_code=502, detail="Failed to list results")
    return listing


@router.get("/results/last", response_model=LastResultResponse)
async def last_result(test_group: str = Query(default="all")):
    """Start time of the most recent result of a test group ('all' for any)."""
    last = await get_control_channel().request(
        "results.last", {"testGroupName": test_group}
    )
    return LastResultResponse(test_group=test_group, last_result=last)


@router.get("/results/{result_id}", response_model=ResultListResponse)
async def list_measurements(result_id: str):
    """List the measurements of one result."""
    listing = await get_control_channel().request("list-results", {"resultId": result_id})
    if listing is None:
        raise HTTPException(status_code=502, detail=f"Failed to list measurements of {result_id}")
    return listing


@router.post("/input-file", response_model=InputFileResponse, status_code=201)
async def write_input_file(request: InputFileRequest):
    """Write an input file (e.g. a URL list) for a later run."""
    result = await get_control_channel().request("fs.write", {"data": request.data})
    if isinstance(result, str):
        raise HTTPException(status_code=500, detail=f"Failed to write input file: {result}")
    return result
