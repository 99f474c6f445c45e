"""
Aggregated APIRouter for the JSON API.

All endpoint routers are included here and exposed as a single ``router``
instance that is mounted by the FastAPI application in ``scandiff.main``.  The
prefix ``/api`` is applied by the application, so sub-routers only declare
their own resource prefix.
"""

from __future__ import annotations

from fastapi import APIRouter

from scandiff.api.routes import analysis, checkmarx

router = APIRouter()

router.include_router(
    checkmarx.router,
    prefix="/checkmarx",
    tags=["checkmarx"],
)
router.include_router(
    analysis.router,
    prefix="/analyze",
    tags=["analysis"],
)
