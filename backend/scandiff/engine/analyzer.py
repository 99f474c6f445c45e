"""
Analysis controller for SAST Filter Diff.

Drives one "Analyze" action end to end:

1. Validate that all five form fields are filled in.
2. Fetch both scan configurations concurrently (fail fast: the first failure
   cancels the sibling fetch and fails the whole action).
3. Extract ``config.sast.filter`` from each document.
4. Compare the two filters with :func:`~scandiff.engine.diff.compare_filters`.
5. Store the outcome as the current :class:`AnalysisState`.

The state slot is replaced as a whole on every transition
(idle -> loading -> success | error), never mutated in place.  Concurrent
actions are not serialised; the last one to finish wins.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from fastapi import status

from scandiff.checkmarx.client import CheckmarxClient, RequestCredentials
from scandiff.core.errors import (
    MalformedConfigurationError,
    MissingParametersError,
    ScanDiffError,
)
from scandiff.core.logging import get_logger
from scandiff.engine.diff import Difference, compare_filters

logger = get_logger(__name__)

FILL_IN_ALL_FIELDS_MESSAGE: str = "Please fill in all fields"
GENERIC_FAILURE_MESSAGE: str = (
    "An error occurred while fetching scan configurations"
)


class AnalysisStatus(str, Enum):
    """Lifecycle of the current analysis."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class AnalysisForm:
    """The five inputs collected by the page.

    ``project`` is required but not used to build any request.
    """

    base_url: str
    bearer_token: str = field(repr=False)
    project: str
    scan1_id: str
    scan2_id: str

    def is_complete(self) -> bool:
        """Return ``True`` when no field is empty or whitespace only."""
        return all(
            value.strip()
            for value in (
                self.base_url,
                self.bearer_token,
                self.project,
                self.scan1_id,
                self.scan2_id,
            )
        )

    @property
    def credentials(self) -> RequestCredentials:
        return RequestCredentials(
            bearer_token=self.bearer_token.strip(),
            base_url=self.base_url.strip(),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Both raw filter objects plus the differences between them."""

    scan1_config: Any
    scan2_config: Any
    differences: list[Difference]


@dataclass(frozen=True)
class AnalysisFailure:
    """Why the last analysis failed, and which HTTP status reports it."""

    message: str
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR


@dataclass(frozen=True)
class AnalysisState:
    """Immutable snapshot of the controller's current slot."""

    status: AnalysisStatus = AnalysisStatus.IDLE
    error: Optional[AnalysisFailure] = None
    result: Optional[AnalysisResult] = None

    @classmethod
    def loading(cls) -> "AnalysisState":
        return cls(status=AnalysisStatus.LOADING)

    @classmethod
    def succeeded(cls, result: AnalysisResult) -> "AnalysisState":
        return cls(status=AnalysisStatus.SUCCESS, result=result)

    @classmethod
    def failed(cls, failure: AnalysisFailure) -> "AnalysisState":
        return cls(status=AnalysisStatus.ERROR, error=failure)


def extract_sast_filter(document: Any, scan_id: str) -> Any:
    """Return ``document["config"]["sast"]["filter"]``.

    A ``sast`` object without a ``filter`` key yields ``None``.

    Raises:
        MalformedConfigurationError: ``config`` or ``config.sast`` is missing
            or is not an object.
    """
    config = document.get("config") if isinstance(document, dict) else None
    if not isinstance(config, dict):
        raise MalformedConfigurationError(scan_id, "config")
    sast = config.get("sast")
    if not isinstance(sast, dict):
        raise MalformedConfigurationError(scan_id, "config.sast")
    return sast.get("filter")


class AnalysisController:
    """Owns the current analysis state and runs analyze actions.

    Usage::

        controller = AnalysisController(CheckmarxClient())
        state = await controller.analyze(form)
    """

    def __init__(self, client: CheckmarxClient) -> None:
        self._client: CheckmarxClient = client
        self._state: AnalysisState = AnalysisState()

    @property
    def state(self) -> AnalysisState:
        """The most recently stored snapshot."""
        return self._state

    async def analyze(self, form: AnalysisForm) -> AnalysisState:
        """Run one analyze action and return the resulting snapshot.

        Never raises for validation, upstream or transport failures; those
        end in an ``error`` state.  Cancellation resets the slot to ``idle``
        before propagating.

        Args:
            form: The five user inputs.

        Returns:
            The new current :class:`AnalysisState`.
        """
        if not form.is_complete():
            self._state = AnalysisState.failed(
                AnalysisFailure(
                    message=FILL_IN_ALL_FIELDS_MESSAGE,
                    status_code=MissingParametersError.status_code,
                )
            )
            return self._state

        self._state = AnalysisState.loading()
        logger.info(
            "Comparing SAST filters of scans %s and %s",
            form.scan1_id,
            form.scan2_id,
            extra={"action": "analysis_start", "target": form.base_url},
        )

        try:
            result = await self._run(form)
        except asyncio.CancelledError:
            self._state = AnalysisState()
            raise
        except ScanDiffError as exc:
            logger.warning(
                "Analysis failed: %s",
                exc.message,
                extra={"action": "analysis_failed", "target": form.base_url},
            )
            self._state = AnalysisState.failed(
                AnalysisFailure(message=exc.message, status_code=exc.status_code)
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Analysis failed unexpectedly",
                extra={"action": "analysis_failed", "target": form.base_url},
            )
            self._state = AnalysisState.failed(
                AnalysisFailure(message=str(exc) or GENERIC_FAILURE_MESSAGE)
            )
        else:
            logger.info(
                "Found %d difference(s)",
                len(result.differences),
                extra={"action": "analysis_completed", "target": form.base_url},
            )
            self._state = AnalysisState.succeeded(result)

        return self._state

    # ── Private Helpers ──────────────────────────────────────────────────

    async def _run(self, form: AnalysisForm) -> AnalysisResult:
        """Fetch both configurations, extract the filters and compare them."""
        scan_ids = (form.scan1_id.strip(), form.scan2_id.strip())
        documents = await self._fetch_all(form.credentials, scan_ids)

        filters = [
            extract_sast_filter(document, scan_id)
            for document, scan_id in zip(documents, scan_ids)
        ]
        return AnalysisResult(
            scan1_config=filters[0],
            scan2_config=filters[1],
            differences=compare_filters(filters[0], filters[1]),
        )

    async def _fetch_all(
        self, credentials: RequestCredentials, scan_ids: tuple[str, ...]
    ) -> list[Any]:
        """Fetch every scan concurrently; the first failure cancels the rest."""
        tasks = [
            asyncio.ensure_future(
                self._client.fetch_scan_configuration(credentials, scan_id)
            )
            for scan_id in scan_ids
        ]
        try:
            return await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
