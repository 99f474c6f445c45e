"""Client for the Checkmarx scan-configuration REST API."""

from scandiff.checkmarx.client import CheckmarxClient, RequestCredentials

__all__ = [
    "CheckmarxClient",
    "RequestCredentials",
]
