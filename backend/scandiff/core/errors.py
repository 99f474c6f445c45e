"""
Exception taxonomy for SAST Filter Diff.

Every error that crosses the HTTP boundary carries its own status code and
renders to the ``{"error": ..., "details": ..., "type": ...}`` payload shape
shared by all endpoints.  Unexpected exceptions are not wrapped here; the
route boundaries convert them with :func:`internal_error_payload`.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import status

MISSING_PARAMETERS_MESSAGE: str = (
    "Missing required parameters: bearerToken, checkmarxBaseUrl, or scanId"
)
INTERNAL_ERROR_MESSAGE: str = "Internal server error"


class ScanDiffError(Exception):
    """Base class for errors that map onto a structured HTTP response.

    Attributes:
        status_code: HTTP status returned to the caller.
        message:     Human-readable message placed in the ``error`` field.
        details:     Optional extra context (e.g. the upstream body text).
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.details: Optional[str] = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body describing this error."""
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class MissingParametersError(ScanDiffError):
    """A required input was absent or empty; no upstream call was made."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = MISSING_PARAMETERS_MESSAGE) -> None:
        super().__init__(message)


class UpstreamError(ScanDiffError):
    """The scanning service answered with a non-2xx status.

    The upstream status code is passed through unchanged.
    """

    def __init__(
        self,
        scan_id: str,
        upstream_status: int,
        reason: str,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Failed to fetch scan {scan_id}: {upstream_status} {reason}".rstrip(),
            status_code=upstream_status,
            details=body,
        )
        self.scan_id: str = scan_id


class MalformedConfigurationError(ScanDiffError):
    """A fetched scan configuration lacks the ``config.sast`` object."""

    def __init__(self, scan_id: str, missing_path: str) -> None:
        super().__init__(
            f"Scan {scan_id} configuration does not contain '{missing_path}'"
        )
        self.scan_id: str = scan_id


def internal_error_payload(exc: BaseException) -> dict[str, Any]:
    """Build the generic 500 payload for an unexpected exception.

    Args:
        exc: The exception caught at a route boundary.

    Returns:
        ``{"error": "Internal server error", "details": ..., "type": ...}``.
    """
    return {
        "error": INTERNAL_ERROR_MESSAGE,
        "details": str(exc) or "Unknown error",
        "type": type(exc).__name__,
    }
