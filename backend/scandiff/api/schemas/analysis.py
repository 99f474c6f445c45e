"""
Pydantic v2 schemas for the analyze action.

``AnalysisStateResponse.from_state`` turns the controller's immutable
:class:`~scandiff.engine.analyzer.AnalysisState` into the JSON snapshot the
page renders.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from scandiff.engine.analyzer import AnalysisForm, AnalysisState, AnalysisStatus
from scandiff.engine.diff import Difference, DifferenceKind


class AnalyzeRequest(BaseModel):
    """Payload for ``POST /api/analyze``: the five form fields."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    checkmarx_base_url: str = Field(default="", alias="checkmarxBaseUrl")
    bearer_token: str = Field(default="", alias="bearerToken")
    checkmarx_project: str = Field(default="", alias="checkmarxProject")
    checkmarx_scan1: str = Field(default="", alias="checkmarxScan1")
    checkmarx_scan2: str = Field(default="", alias="checkmarxScan2")

    def to_form(self) -> AnalysisForm:
        return AnalysisForm(
            base_url=self.checkmarx_base_url,
            bearer_token=self.bearer_token,
            project=self.checkmarx_project,
            scan1_id=self.checkmarx_scan1,
            scan2_id=self.checkmarx_scan2,
        )


class DifferenceRecord(BaseModel):
    """One structured difference alongside its rendered message."""

    kind: DifferenceKind
    path: str
    left: Optional[str] = None
    right: Optional[str] = None
    message: str

    @classmethod
    def from_difference(cls, difference: Difference) -> "DifferenceRecord":
        return cls(
            kind=difference.kind,
            path=difference.path,
            left=difference.left,
            right=difference.right,
            message=difference.describe(),
        )


class AnalysisResultResponse(BaseModel):
    """Both raw filters and the difference list."""

    model_config = ConfigDict(populate_by_name=True)

    scan1_config: Any = Field(default=None, alias="scan1Config")
    scan2_config: Any = Field(default=None, alias="scan2Config")
    differences: list[str]
    records: list[DifferenceRecord]


class AnalysisStateResponse(BaseModel):
    """Snapshot of the current analysis."""

    status: AnalysisStatus
    error: Optional[str] = None
    result: Optional[AnalysisResultResponse] = None

    @classmethod
    def from_state(cls, state: AnalysisState) -> "AnalysisStateResponse":
        result: Optional[AnalysisResultResponse] = None
        if state.result is not None:
            result = AnalysisResultResponse(
                scan1_config=state.result.scan1_config,
                scan2_config=state.result.scan2_config,
                differences=[d.describe() for d in state.result.differences],
                records=[
                    DifferenceRecord.from_difference(d)
                    for d in state.result.differences
                ],
            )
        return cls(
            status=state.status,
            error=state.error.message if state.error else None,
            result=result,
        )
