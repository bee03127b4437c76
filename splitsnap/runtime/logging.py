"""Centralized logging configuration for splitsnap.

Usage:
    from splitsnap.runtime import get_logger
    logger = get_logger(__name__)

    logger.debug("Detailed debug info")
    logger.info("General info")

Environment variables:
    SPLITSNAP_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR). Default: INFO
"""

import logging
import os
import sys

DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

ROOT_LOGGER_NAME = "splitsnap"
LOG_LEVEL_ENV = "SPLITSNAP_LOG_LEVEL"

_LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_logging_configured = False


def parse_log_level(value: int | str | None, default: int = DEFAULT_LOG_LEVEL) -> int:
    """Resolve a level name (``"debug"``) or number (``"10"``); unknown values give ``default``."""
    if isinstance(value, int):
        return value
    text = (value or "").strip().upper()
    if text.isdigit():
        return int(text)
    return _LEVEL_NAMES.get(text, default)


def _formatter(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level <= logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | None = None) -> None:
    """Configure the ``splitsnap`` logger namespace once per process.

    Args:
        level: Log level to use. If None, reads from SPLITSNAP_LOG_LEVEL env var
               or uses DEFAULT_LOG_LEVEL.
    """
    global _logging_configured

    if _logging_configured:
        return

    if level is None:
        level = parse_log_level(os.environ.get(LOG_LEVEL_ENV))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(level))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    Module names already under ``splitsnap.`` are used as-is; anything else is
    nested under the namespace.
    """
    configure_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: int | str) -> None:
    """Change the log level at runtime, e.g. for ``splitsnap --verbose``."""
    resolved = parse_log_level(level)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolved)

    for handler in logger.handlers:
        handler.setFormatter(_formatter(resolved))
