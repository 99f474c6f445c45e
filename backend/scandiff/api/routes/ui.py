"""
Serves the single-page form.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

_PAGE_RESOURCE: str = "index.html"


@lru_cache(maxsize=1)
def load_page() -> str:
    """Read the packaged page once per process."""
    return (
        resources.files("scandiff")
        .joinpath("static", _PAGE_RESOURCE)
        .read_text(encoding="utf-8")
    )


@router.get(
    "/",
    response_class=HTMLResponse,
    include_in_schema=False,
)
async def index() -> HTMLResponse:
    """Return the SAST filter diff page."""
    return HTMLResponse(content=load_page())
