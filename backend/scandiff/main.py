"""
SAST Filter Diff FastAPI application entry point.

Creates and configures the FastAPI app with:
- CORS middleware
- Security headers middleware
- API router (Checkmarx proxy and analyze action)
- The single-page form
- Health check endpoint
- Exception handler for the structured error taxonomy
- Startup / shutdown lifecycle hooks
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from scandiff import __version__
from scandiff.api.routes.router import router as api_router
from scandiff.api.routes.ui import router as ui_router
from scandiff.checkmarx.client import CheckmarxClient
from scandiff.config import Settings, get_settings
from scandiff.core.errors import ScanDiffError
from scandiff.core.logging import configure_logging, get_logger
from scandiff.engine.analyzer import AnalysisController

# ── Constants ────────────────────────────────────────────────────────────────

_HEALTH_CHECK_PATH: str = "/health"

_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), camera=(), microphone=()",
}


# ── Security Headers Middleware ──────────────────────────────────────────────

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that injects security-related HTTP response headers.

    Every outgoing response receives the headers defined in
    ``_SECURITY_HEADERS``.  Responses below the API prefix additionally get
    ``Cache-Control: no-store`` because they are derived from user-supplied
    credentials.
    """

    def __init__(self, app: Any, api_prefix: str) -> None:
        super().__init__(app)
        self._api_prefix: str = api_prefix

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request and append security headers to the response.

        Args:
            request: The incoming HTTP request.
            call_next: Callable that forwards to the next middleware or route.

        Returns:
            The response with additional security headers.
        """
        response: Response = await call_next(request)
        for header_name, header_value in _SECURITY_HEADERS.items():
            response.headers[header_name] = header_value
        if request.url.path.startswith(self._api_prefix):
            response.headers["Cache-Control"] = "no-store"
        return response


# ── Exception Handlers ───────────────────────────────────────────────────────

async def scandiff_error_handler(request: Request, exc: ScanDiffError) -> JSONResponse:
    """Render any :class:`ScanDiffError` escaping a route as its payload."""
    get_logger(__name__).warning(
        "Request to %s rejected with HTTP %d: %s",
        request.url.path,
        exc.status_code,
        exc.message,
        extra={"action": "request_error", "target": getattr(exc, "scan_id", "-")},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# ── Lifespan ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup and log the shutdown."""
    settings: Settings = application.state.settings
    configure_logging()
    logger = get_logger(__name__)
    logger.info(
        "Application starting",
        extra={"action": "startup", "target": settings.APP_NAME},
    )
    yield
    logger.info(
        "Application shutting down",
        extra={"action": "shutdown", "target": settings.APP_NAME},
    )


# ── Application Factory ─────────────────────────────────────────────────────

def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application instance.

    Args:
        settings: Explicit settings; defaults to :func:`get_settings`.

    Returns:
        A fully configured ``FastAPI`` app ready to serve requests.
    """
    settings = settings or get_settings()

    application = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Compare the SAST filter configuration of two Checkmarx scans."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared state ─────────────────────────────────────────────────────

    checkmarx_client = CheckmarxClient(verify=settings.CHECKMARX_VERIFY_TLS)
    application.state.settings = settings
    application.state.checkmarx_client = checkmarx_client
    application.state.analysis_controller = AnalysisController(checkmarx_client)

    # ── Middleware (order matters: outermost first) ───────────────────────

    application.add_middleware(
        SecurityHeadersMiddleware,
        api_prefix=settings.API_PREFIX,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )

    application.add_exception_handler(ScanDiffError, scandiff_error_handler)

    # ── Routers ──────────────────────────────────────────────────────────

    application.include_router(api_router, prefix=settings.API_PREFIX)
    application.include_router(ui_router, tags=["ui"])

    # ── Health Check ─────────────────────────────────────────────────────

    @application.get(
        _HEALTH_CHECK_PATH,
        tags=["health"],
        summary="Application health check",
        response_class=JSONResponse,
    )
    async def health_check() -> dict[str, Any]:
        """Return the current health status of the application.

        Returns:
            A JSON object with ``status``, ``app``, ``version`` and
            ``timestamp`` fields.
        """
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return application


# ── Module-Level App Instance ────────────────────────────────────────────────

app: FastAPI = create_app()
