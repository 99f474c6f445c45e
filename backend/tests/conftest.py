"""
Shared pytest fixtures for the SAST Filter Diff test suite.

Provides a scripted fake of the Checkmarx scan-configuration API (served
through ``httpx.MockTransport``), a FastAPI test application whose client and
controller dependencies are overridden to use it, and an ``httpx.AsyncClient``
wired to that application.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from scandiff.checkmarx.client import CheckmarxClient, RequestCredentials
from scandiff.config import Settings
from scandiff.engine.analyzer import AnalysisController


BASE_URL: str = "https://checkmarx.example.com"
BEARER_TOKEN: str = "eyJhbGciOiJSUzI1NiJ9.test-token"


# ---------------------------------------------------------------------------
# Fake upstream
# ---------------------------------------------------------------------------

class FakeCheckmarx:
    """Scripted stand-in for ``GET /api/scans/{id}/configuration``.

    Responses are registered per scan id; every request is recorded so tests
    can assert on the number of upstream calls and their headers.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: dict[str, Any] = {}

    def add_configuration(self, scan_id: str, document: Any) -> None:
        self._responses[scan_id] = httpx.Response(200, json=document)

    def add_filter(self, scan_id: str, sast_filter: Any) -> None:
        self.add_configuration(
            scan_id,
            {"id": scan_id, "config": {"sast": {"filter": sast_filter}}},
        )

    def add_response(
        self,
        scan_id: str,
        status_code: int,
        text: str = "",
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self._responses[scan_id] = httpx.Response(
            status_code, text=text, headers=headers
        )

    def add_exception(self, scan_id: str, exc: Exception) -> None:
        self._responses[scan_id] = exc

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        scan_id = request.url.path.split("/")[-2]
        outcome = self._responses.get(scan_id)
        if outcome is None:
            return httpx.Response(404, text=f"scan {scan_id} not found")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture()
def fake_upstream() -> FakeCheckmarx:
    """Return an empty scripted upstream."""
    return FakeCheckmarx()


@pytest.fixture()
def checkmarx_client(fake_upstream: FakeCheckmarx) -> CheckmarxClient:
    """Return a CheckmarxClient whose requests are answered by the fake."""
    return CheckmarxClient(transport=httpx.MockTransport(fake_upstream.handler))


@pytest.fixture()
def credentials() -> RequestCredentials:
    return RequestCredentials(bearer_token=BEARER_TOKEN, base_url=BASE_URL)


# ---------------------------------------------------------------------------
# FastAPI application with dependency overrides
# ---------------------------------------------------------------------------

@pytest.fixture()
def test_settings() -> Settings:
    return Settings(APP_NAME="SAST Filter Diff Test", CORS_ORIGINS=["http://test"])


@pytest_asyncio.fixture()
async def test_app(
    test_settings: Settings,
    checkmarx_client: CheckmarxClient,
) -> AsyncGenerator[FastAPI, None]:
    """Return the application with the upstream replaced by the fake.

    A dedicated controller is created per test so that the shared result slot
    never leaks between tests.
    """
    from scandiff.api.deps import get_analysis_controller, get_checkmarx_client
    from scandiff.main import create_app

    app = create_app(test_settings)
    controller = AnalysisController(checkmarx_client)
    app.dependency_overrides[get_checkmarx_client] = lambda: checkmarx_client
    app.dependency_overrides[get_analysis_controller] = lambda: controller

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx.AsyncClient wired to the test FastAPI app."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Filter fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def sample_filter() -> dict:
    """Return a realistic ``config.sast.filter`` object."""
    return {
        "presetName": "Checkmarx Default",
        "excludeFolders": ["node_modules", "test", "dist"],
        "excludeFiles": "*.min.js,*.spec.ts",
        "incremental": False,
        "engineConfiguration": {
            "id": 1,
            "languageMode": "multi",
            "maxQueueTime": 300,
        },
    }
