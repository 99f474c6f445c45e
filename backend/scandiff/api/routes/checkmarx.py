"""
Same-origin proxy for the Checkmarx scan-configuration API.

The page cannot call the scanning service directly (cross-origin requests
and credential exposure), so it posts the credentials and scan id here and
this endpoint performs the authenticated ``GET`` on its behalf.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from scandiff.api.deps import get_checkmarx_client
from scandiff.api.schemas.checkmarx import ConfigurationRequest, ErrorResponse
from scandiff.checkmarx.client import CheckmarxClient
from scandiff.core.errors import (
    MissingParametersError,
    ScanDiffError,
    internal_error_payload,
)
from scandiff.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _parse_body(request: Request) -> ConfigurationRequest:
    """Decode the JSON body; anything but an object counts as missing input.

    Raises:
        MissingParametersError: The body is not a JSON object or lacks one of
            the three required fields.
        ValueError: The body is not valid JSON.
    """
    raw: Any = await request.json()
    try:
        body = ConfigurationRequest.model_validate(raw)
    except ValidationError as exc:
        raise MissingParametersError() from exc
    if not body.is_complete():
        raise MissingParametersError()
    return body


@router.post(
    "",
    summary="Fetch one scan configuration from Checkmarx",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": ConfigurationRequest.model_json_schema(by_alias=True)
                }
            },
        }
    },
)
async def proxy_scan_configuration(
    request: Request,
    client: CheckmarxClient = Depends(get_checkmarx_client),
) -> JSONResponse:
    """Relay ``GET {checkmarxBaseUrl}/api/scans/{scanId}/configuration``.

    Returns the upstream JSON unchanged on success.  Missing parameters give
    *400*, upstream failures keep the upstream status, and any other failure
    (bad JSON, network errors) gives *500*.
    """
    try:
        body = await _parse_body(request)
        data = await client.fetch_scan_configuration(body.credentials(), body.scan_id)
        return JSONResponse(content=data)
    except ScanDiffError:
        # Rendered by the application's ScanDiffError handler.
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Proxy request failed with %s",
            type(exc).__name__,
            extra={"action": "proxy_failure", "target": "-"},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=internal_error_payload(exc),
        )
