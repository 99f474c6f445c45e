"""
Analyze action: compare the SAST filters of two scans.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from scandiff.api.deps import get_analysis_controller
from scandiff.api.schemas.analysis import AnalysisStateResponse, AnalyzeRequest
from scandiff.engine.analyzer import AnalysisController, AnalysisStatus

router = APIRouter()


@router.post(
    "",
    response_model=AnalysisStateResponse,
    summary="Diff the SAST filter configuration of two scans",
)
async def analyze_scans(
    body: AnalyzeRequest,
    controller: AnalysisController = Depends(get_analysis_controller),
) -> JSONResponse:
    """Run one analyze action and return the resulting state snapshot.

    The HTTP status mirrors the outcome: *200* on success, *400* when a
    field is empty, the upstream status when the scanning service rejected a
    fetch, *500* for anything else.
    """
    state = await controller.analyze(body.to_form())
    payload = AnalysisStateResponse.from_state(state)

    status_code = status.HTTP_200_OK
    if state.status is AnalysisStatus.ERROR and state.error is not None:
        status_code = state.error.status_code

    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(mode="json", by_alias=True),
    )
