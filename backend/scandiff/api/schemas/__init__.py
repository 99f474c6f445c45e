"""
Pydantic v2 schemas for the SAST Filter Diff API.

Re-exports every public schema so consumers can do::

    from scandiff.api.schemas import ConfigurationRequest, AnalyzeRequest  # etc.
"""

from scandiff.api.schemas.analysis import (
    AnalysisResultResponse,
    AnalysisStateResponse,
    AnalyzeRequest,
    DifferenceRecord,
)
from scandiff.api.schemas.checkmarx import (
    ConfigurationRequest,
    ErrorResponse,
)

__all__: list[str] = [
    # checkmarx
    "ConfigurationRequest",
    "ErrorResponse",
    # analysis
    "AnalyzeRequest",
    "AnalysisResultResponse",
    "AnalysisStateResponse",
    "DifferenceRecord",
]
