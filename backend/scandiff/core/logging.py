"""
Logging setup for SAST Filter Diff.

Every line carries an ``action`` (what the service was doing, e.g.
``upstream_fetch``) and a ``target`` (usually the scan id), written as
``key=value`` pairs after the logger name::

    from scandiff.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("fetch started", extra={"action": "upstream_fetch", "target": scan_id})

Bearer tokens are never passed to a logger; log their length instead.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from scandiff.config import get_settings

# ── Constants ────────────────────────────────────────────────────────────────

_LOG_FORMAT: str = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "action=%(action)s | target=%(target)s | %(message)s"
)
_DATE_FORMAT: str = "%Y-%m-%dT%H:%M:%S%z"
_ROOT_LOGGER_NAME: str = "scandiff"

# httpx logs every request line at INFO, including full upstream URLs.
_NOISY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore")


# ── Formatter ────────────────────────────────────────────────────────────────

class StructuredFormatter(logging.Formatter):
    """Render ``action`` and ``target`` as ``-`` on records that lack them.

    Third-party records and plain ``logger.info(msg)`` calls have neither
    field.
    """

    _FIELDS: tuple[str, ...] = ("action", "target")

    def format(self, record: logging.LogRecord) -> str:
        for name in self._FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return super().format(record)


# ── Setup ────────────────────────────────────────────────────────────────────

def _resolve_level(level: Optional[str]) -> str:
    if level is not None:
        return level
    settings = get_settings()
    return settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO")


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stdout handler to the ``scandiff`` logger and set its level.

    Runs from the application lifespan. Repeated calls only adjust the level;
    the handler is attached once.

    Args:
        level: Explicit level name. Falls back to ``LOG_LEVEL``, then to
            ``DEBUG`` or ``INFO`` depending on ``DEBUG``.
    """
    level = _resolve_level(level)

    root_logger = logging.getLogger(_ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        root_logger.addHandler(handler)
    for handler in root_logger.handlers:
        handler.setLevel(level)

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    root_logger.info(
        "Logging configured at %s level",
        level,
        extra={"action": "logging_init", "target": get_settings().APP_NAME},
    )


def get_logger(name: str) -> logging.Logger:
    """Return ``name`` as a logger below ``scandiff``.

    ``get_logger(__name__)`` inside the package keeps the module path as is
    (``scandiff.engine.diff``); other names are prefixed.
    """
    if name == _ROOT_LOGGER_NAME or name.startswith(f"{_ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
