"""
Pydantic v2 schemas for the Checkmarx proxy endpoint.

Field names follow the camelCase keys the page sends; the Python attributes
are snake_case aliases of them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from scandiff.checkmarx.client import RequestCredentials


class ConfigurationRequest(BaseModel):
    """Payload for ``POST /api/checkmarx``.

    Every field is optional at the schema level so that missing values are
    reported with the endpoint's own 400 payload instead of a 422.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    bearer_token: Optional[str] = Field(default=None, alias="bearerToken")
    checkmarx_base_url: Optional[str] = Field(
        default=None,
        alias="checkmarxBaseUrl",
        examples=["https://checkmarx.example.com"],
    )
    scan_id: Optional[str] = Field(default=None, alias="scanId")

    def is_complete(self) -> bool:
        """Return ``True`` when all three parameters are non-empty."""
        return bool(self.bearer_token and self.checkmarx_base_url and self.scan_id)

    def credentials(self) -> RequestCredentials:
        return RequestCredentials(
            bearer_token=self.bearer_token or "",
            base_url=self.checkmarx_base_url or "",
        )


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    error: str
    details: Optional[str] = None
    type: Optional[str] = None
