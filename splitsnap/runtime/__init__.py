"""Runtime infrastructure for splitsnap.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Settings from the environment via get_settings()
- OCR engines (ocr_engines) and the HTTP server (bill_server), imported directly

Usage:
    from splitsnap.runtime import get_logger, get_settings

    logger = get_logger(__name__)
    settings = get_settings()
"""

from splitsnap.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    parse_log_level,
    set_log_level,
)
from splitsnap.runtime.settings import Settings, get_settings, reset_settings

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "parse_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Settings
    "Settings",
    "get_settings",
    "reset_settings",
]
