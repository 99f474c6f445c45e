"""
HTTP client for the Checkmarx scan-configuration API.

Issues a single bearer-authenticated ``GET`` to
``{base_url}/api/scans/{scan_id}/configuration`` and returns the parsed JSON
document.  Non-2xx answers are raised as
:class:`~scandiff.core.errors.UpstreamError`; transport failures and
malformed JSON propagate unchanged so that the caller's boundary can decide
how to report them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

import httpx

from scandiff.core.errors import UpstreamError
from scandiff.core.logging import get_logger

logger = get_logger(__name__)


def _reject_constant(name: str) -> Any:
    """Refuse the non-standard ``NaN`` and ``Infinity`` literals."""
    raise ValueError(f"Invalid JSON constant: {name}")


@dataclass(frozen=True)
class RequestCredentials:
    """Per-request credentials for the scanning service.

    Attributes:
        bearer_token: Opaque token forwarded verbatim in ``Authorization``.
        base_url:     Root URL of the Checkmarx instance.
    """

    bearer_token: str = field(repr=False)
    base_url: str


class CheckmarxClient:
    """Thin async wrapper around the scan-configuration endpoint.

    A fresh :class:`httpx.AsyncClient` is opened per request so that no
    connection state or credentials outlive a single call.

    Attributes:
        CONFIGURATION_PATH: Path template appended to the base URL.
    """

    CONFIGURATION_PATH: str = "/api/scans/{scan_id}/configuration"

    def __init__(
        self,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialise the client.

        Args:
            verify:    Whether to verify the upstream TLS certificate.
            transport: Optional custom transport (e.g. ``httpx.MockTransport``).
        """
        self._verify: bool = verify
        self._transport: Optional[httpx.AsyncBaseTransport] = transport

    def build_configuration_url(self, base_url: str, scan_id: str) -> str:
        """Return the upstream URL for *scan_id* below *base_url*."""
        path = self.CONFIGURATION_PATH.format(scan_id=quote(scan_id, safe=""))
        return f"{base_url.rstrip('/')}{path}"

    async def fetch_scan_configuration(
        self, credentials: RequestCredentials, scan_id: str
    ) -> Any:
        """Fetch and parse the configuration document of one scan.

        Args:
            credentials: Base URL and bearer token of the caller.
            scan_id:     Identifier of the scan to fetch.

        Returns:
            The upstream JSON body, unchanged.

        Raises:
            UpstreamError: The upstream answered with a non-2xx status.
            httpx.HTTPError: Connection, protocol or URL errors.
            ValueError: The upstream body is not valid JSON (``NaN`` and
                ``Infinity`` included).
        """
        url = self.build_configuration_url(credentials.base_url, scan_id)
        logger.info(
            "Requesting scan configuration from %s (token length %d)",
            url,
            len(credentials.bearer_token),
            extra={"action": "upstream_fetch", "target": scan_id},
        )

        async with httpx.AsyncClient(
            verify=self._verify,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            response = await client.get(
                url,
                headers={
                    "Authorization": f"Bearer {credentials.bearer_token}",
                    "Content-Type": "application/json",
                },
            )

        logger.debug(
            "Upstream responded with HTTP %d",
            response.status_code,
            extra={"action": "upstream_status", "target": scan_id},
        )

        if not response.is_success:
            logger.warning(
                "Upstream rejected scan configuration request: HTTP %d %s",
                response.status_code,
                response.reason_phrase,
                extra={"action": "upstream_error", "target": scan_id},
            )
            raise UpstreamError(
                scan_id=scan_id,
                upstream_status=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )

        data: Any = json.loads(response.text, parse_constant=_reject_constant)
        if isinstance(data, dict):
            logger.debug(
                "Parsed scan configuration with keys %s",
                sorted(data),
                extra={"action": "upstream_parsed", "target": scan_id},
            )
        return data
