"""SAST Filter Diff engine: structural comparison and the analyze action."""

from scandiff.engine.analyzer import (
    AnalysisController,
    AnalysisForm,
    AnalysisResult,
    AnalysisState,
    AnalysisStatus,
)
from scandiff.engine.diff import Difference, DifferenceKind, compare_filters

__all__ = [
    "AnalysisController",
    "AnalysisForm",
    "AnalysisResult",
    "AnalysisState",
    "AnalysisStatus",
    "Difference",
    "DifferenceKind",
    "compare_filters",
]
