"""
Shared FastAPI dependency functions for the SAST Filter Diff API.

Both the upstream client and the analysis controller live on
``app.state`` (created by :func:`scandiff.main.create_app`) so that tests can
swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from scandiff.checkmarx.client import CheckmarxClient
from scandiff.engine.analyzer import AnalysisController


def get_checkmarx_client(request: Request) -> CheckmarxClient:
    """Return the application's :class:`CheckmarxClient`."""
    return request.app.state.checkmarx_client


def get_analysis_controller(request: Request) -> AnalysisController:
    """Return the application's single :class:`AnalysisController`.

    The controller holds the one "current result" slot shared by every
    analyze request.
    """
    return request.app.state.analysis_controller
