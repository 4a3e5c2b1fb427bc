"""
Logging setup for the household services API.

Modules log through ``logging.getLogger(__name__)``; the application factory
calls :func:`configure_logging` once at startup.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import get_settings

DEFAULT_LOGGER_NAME = "household_api"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _parse_level(value: str | None) -> Optional[int]:
    """Map 'DEBUG'/'info' to a logging constant; None when unrecognized."""
    if not value:
        return None
    level = getattr(logging, value.strip().upper(), None)
    return level if isinstance(level, int) else None


def configure_logging(*, force: bool = False) -> logging.Logger:
    """Initialize root logging from LOG_LEVEL and return the service logger."""
    global _configured
    if _configured and not force:
        return logging.getLogger(DEFAULT_LOGGER_NAME)

    level = _parse_level(get_settings().log_level) or logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
    logging.getLogger(DEFAULT_LOGGER_NAME).setLevel(level)
    _configured = True
    return logging.getLogger(DEFAULT_LOGGER_NAME)
