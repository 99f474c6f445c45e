"""
Tests for the analysis controller.

Validates form validation (no network call on empty fields), concurrent
fetching, fail-fast behaviour when one fetch fails, extraction of
``config.sast.filter``, and the atomic state transitions of the single
result slot.
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from scandiff.checkmarx.client import CheckmarxClient, RequestCredentials
from scandiff.core.errors import MalformedConfigurationError, UpstreamError
from scandiff.engine.analyzer import (
    FILL_IN_ALL_FIELDS_MESSAGE,
    GENERIC_FAILURE_MESSAGE,
    AnalysisController,
    AnalysisForm,
    AnalysisState,
    AnalysisStatus,
    extract_sast_filter,
)
from scandiff.engine.diff import DifferenceKind

from tests.conftest import BASE_URL, BEARER_TOKEN, FakeCheckmarx


def _form(**overrides: str) -> AnalysisForm:
    values = {
        "base_url": BASE_URL,
        "bearer_token": BEARER_TOKEN,
        "project": "WebGoat",
        "scan1_id": "scan-1",
        "scan2_id": "scan-2",
    }
    values.update(overrides)
    return AnalysisForm(**values)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field_name",
    ["base_url", "bearer_token", "project", "scan1_id", "scan2_id"],
)
async def test_empty_field_fails_without_network_call(field_name: str) -> None:
    """Any empty field ends in the generic validation error; nothing is fetched."""
    client = MagicMock(spec=CheckmarxClient)
    client.fetch_scan_configuration = AsyncMock()
    controller = AnalysisController(client)

    state = await controller.analyze(_form(**{field_name: "   "}))

    assert state.status is AnalysisStatus.ERROR
    assert state.error is not None
    assert state.error.message == FILL_IN_ALL_FIELDS_MESSAGE
    assert state.error.status_code == 400
    assert state.result is None
    client.fetch_scan_configuration.assert_not_called()


def test_form_repr_hides_token() -> None:
    assert BEARER_TOKEN not in repr(_form())


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_analyze_success_stores_filters_and_differences(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    """Both filters and their differences land in the success state."""
    fake_upstream.add_filter("scan-1", {"x": 1, "y": {"z": 2}})
    fake_upstream.add_filter("scan-2", {"x": 1, "y": {"z": 3}, "w": True})
    controller = AnalysisController(checkmarx_client)

    state = await controller.analyze(_form())

    assert state.status is AnalysisStatus.SUCCESS
    assert state.error is None
    assert state.result is not None
    assert state.result.scan1_config == {"x": 1, "y": {"z": 2}}
    assert state.result.scan2_config == {"x": 1, "y": {"z": 3}, "w": True}
    assert [d.describe() for d in state.result.differences] == [
        "y.z: Scan 1 = 2, Scan 2 = 3",
        "w: Missing in Scan 1, present in Scan 2 (true)",
    ]
    assert controller.state is state
    assert fake_upstream.call_count == 2


@pytest.mark.asyncio
async def test_project_field_is_not_sent_upstream(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    """The project identifier is collected but never used in a request."""
    fake_upstream.add_filter("scan-1", {})
    fake_upstream.add_filter("scan-2", {})
    controller = AnalysisController(checkmarx_client)

    await controller.analyze(_form(project="secret-project-name"))

    for request in fake_upstream.requests:
        assert "secret-project-name" not in str(request.url)
        assert all("secret-project-name" not in v for v in request.headers.values())


@pytest.mark.asyncio
async def test_null_filter_is_treated_as_having_no_keys(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    """A null filter against {"a": 1} yields one missing-in-left record."""
    fake_upstream.add_filter("scan-1", None)
    fake_upstream.add_filter("scan-2", {"a": 1})
    controller = AnalysisController(checkmarx_client)

    state = await controller.analyze(_form())

    assert state.status is AnalysisStatus.SUCCESS
    assert state.result is not None
    assert state.result.scan1_config is None
    assert len(state.result.differences) == 1
    assert state.result.differences[0].kind is DifferenceKind.MISSING_IN_LEFT
    assert state.result.differences[0].path == "a"


@pytest.mark.asyncio
async def test_fetches_run_concurrently() -> None:
    """The second fetch starts before the first one has finished."""
    started: list[str] = []
    both_started = asyncio.Event()

    async def _fetch(credentials: RequestCredentials, scan_id: str) -> Any:
        started.append(scan_id)
        if len(started) == 2:
            both_started.set()
        await asyncio.wait_for(both_started.wait(), timeout=1.0)
        return {"config": {"sast": {"filter": {"id": scan_id}}}}

    client = MagicMock(spec=CheckmarxClient)
    client.fetch_scan_configuration = AsyncMock(side_effect=_fetch)
    controller = AnalysisController(client)

    state = await controller.analyze(_form())

    assert state.status is AnalysisStatus.SUCCESS
    assert sorted(started) == ["scan-1", "scan-2"]


# ---------------------------------------------------------------------------
# Failure paths
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_one_failing_fetch_fails_the_whole_action(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    """A 404 for one scan discards the other scan's result entirely."""
    fake_upstream.add_filter("scan-1", {"a": 1})
    fake_upstream.add_response("scan-2", 404, text="not found")
    controller = AnalysisController(checkmarx_client)

    state = await controller.analyze(_form())

    assert state.status is AnalysisStatus.ERROR
    assert state.result is None
    assert state.error is not None
    assert state.error.message == "Failed to fetch scan scan-2: 404 Not Found"
    assert state.error.status_code == 404


@pytest.mark.asyncio
async def test_failure_cancels_the_sibling_fetch() -> None:
    """The first failure cancels the fetch that is still in flight."""
    sibling_cancelled = asyncio.Event()

    async def _fetch(credentials: RequestCredentials, scan_id: str) -> Any:
        if scan_id == "scan-1":
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                sibling_cancelled.set()
                raise
        raise UpstreamError(scan_id, 401, "Unauthorized")

    client = MagicMock(spec=CheckmarxClient)
    client.fetch_scan_configuration = AsyncMock(side_effect=_fetch)
    controller = AnalysisController(client)

    state = await controller.analyze(_form())
    await asyncio.wait_for(sibling_cancelled.wait(), timeout=1.0)

    assert state.status is AnalysisStatus.ERROR
    assert state.error is not None
    assert state.error.message == "Failed to fetch scan scan-2: 401 Unauthorized"


@pytest.mark.asyncio
async def test_transport_error_surfaces_its_message(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    fake_upstream.add_filter("scan-1", {})
    fake_upstream.add_exception("scan-2", httpx.ConnectError("connection refused"))
    controller = AnalysisController(checkmarx_client)

    state = await controller.analyze(_form())

    assert state.status is AnalysisStatus.ERROR
    assert state.error is not None
    assert state.error.message == "connection refused"
    assert state.error.status_code == 500


@pytest.mark.asyncio
async def test_exception_without_message_uses_generic_text() -> None:
    client = MagicMock(spec=CheckmarxClient)
    client.fetch_scan_configuration = AsyncMock(side_effect=RuntimeError())
    controller = AnalysisController(client)

    state = await controller.analyze(_form())

    assert state.error is not None
    assert state.error.message == GENERIC_FAILURE_MESSAGE


@pytest.mark.asyncio
async def test_malformed_configuration_fails_the_action(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    fake_upstream.add_filter("scan-1", {})
    fake_upstream.add_configuration("scan-2", {"config": {"kics": {}}})
    controller = AnalysisController(checkmarx_client)

    state = await controller.analyze(_form())

    assert state.status is AnalysisStatus.ERROR
    assert state.error is not None
    assert "scan-2" in state.error.message
    assert "config.sast" in state.error.message


# ---------------------------------------------------------------------------
# State slot
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_state_is_loading_while_fetching_and_cleared_afterwards() -> None:
    """The slot reads loading mid-flight and never stays loading."""
    observed: list[AnalysisStatus] = []
    controller: AnalysisController

    async def _fetch(credentials: RequestCredentials, scan_id: str) -> Any:
        observed.append(controller.state.status)
        raise UpstreamError(scan_id, 500, "Internal Server Error")

    client = MagicMock(spec=CheckmarxClient)
    client.fetch_scan_configuration = AsyncMock(side_effect=_fetch)
    controller = AnalysisController(client)

    assert controller.state == AnalysisState()
    state = await controller.analyze(_form())

    assert AnalysisStatus.LOADING in observed
    assert state.status is AnalysisStatus.ERROR
    assert controller.state.status is not AnalysisStatus.LOADING


@pytest.mark.asyncio
async def test_new_result_replaces_previous_one(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    fake_upstream.add_filter("scan-1", {"a": 1})
    fake_upstream.add_filter("scan-2", {"a": 2})
    fake_upstream.add_filter("scan-3", {"a": 1})
    controller = AnalysisController(checkmarx_client)

    first = await controller.analyze(_form())
    second = await controller.analyze(_form(scan2_id="scan-3"))

    assert first.result is not None and len(first.result.differences) == 1
    assert second.result is not None and second.result.differences == []
    assert controller.state is second


@pytest.mark.asyncio
async def test_error_discards_previous_result(
    fake_upstream: FakeCheckmarx,
    checkmarx_client: CheckmarxClient,
) -> None:
    fake_upstream.add_filter("scan-1", {"a": 1})
    fake_upstream.add_filter("scan-2", {"a": 2})
    controller = AnalysisController(checkmarx_client)

    await controller.analyze(_form())
    state = await controller.analyze(_form(scan2_id="missing"))

    assert state.status is AnalysisStatus.ERROR
    assert state.result is None


@pytest.mark.asyncio
async def test_cancellation_resets_state_to_idle() -> None:
    async def _hang(credentials: RequestCredentials, scan_id: str) -> Any:
        await asyncio.sleep(10)

    client = MagicMock(spec=CheckmarxClient)
    client.fetch_scan_configuration = AsyncMock(side_effect=_hang)
    controller = AnalysisController(client)

    task = asyncio.ensure_future(controller.analyze(_form()))
    await asyncio.sleep(0.01)
    assert controller.state.status is AnalysisStatus.LOADING
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert controller.state.status is AnalysisStatus.IDLE


# ---------------------------------------------------------------------------
# extract_sast_filter
# ---------------------------------------------------------------------------

def test_extract_sast_filter_returns_nested_value() -> None:
    document = {"config": {"sast": {"filter": {"a": 1}, "other": True}}, "id": "x"}
    assert extract_sast_filter(document, "x") == {"a": 1}


def test_extract_sast_filter_missing_filter_is_none() -> None:
    assert extract_sast_filter({"config": {"sast": {}}}, "x") is None


@pytest.mark.parametrize(
    "document, missing",
    [
        ({}, "config"),
        ([], "config"),
        ({"config": None}, "config"),
        ({"config": {}}, "config.sast"),
        ({"config": {"sast": "on"}}, "config.sast"),
    ],
)
def test_extract_sast_filter_rejects_malformed_documents(document, missing: str) -> None:
    with pytest.raises(MalformedConfigurationError) as exc_info:
        extract_sast_filter(document, "scan-9")

    assert f"'{missing}'" in exc_info.value.message
    assert exc_info.value.scan_id == "scan-9"
