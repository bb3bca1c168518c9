"""
Logging configuration for Ariadne.
All package loggers hang off the "ariadne" logger and write to stdout.
"""

import logging
import sys
from typing import Optional
from .config import LOGGING_CONFIG

LOGGER_NAME = "ariadne"

# Chatty third-party loggers kept at WARNING unless we are debugging
_NOISY_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: Optional[str]) -> int:
    value = getattr(logging, (level or LOGGING_CONFIG["LEVEL"]).upper(), None)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: Optional[str] = None,
    enable_console: bool = True
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level name; defaults to ARIADNE_LOG_LEVEL
        enable_console: Attach a stdout handler

    Returns:
        The "ariadne" logger
    """
    log_level = _resolve_level(level)

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(log_level)
    package_logger.handlers.clear()

    if enable_console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOGGING_CONFIG["FORMAT"]))
        package_logger.addHandler(handler)

    package_logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(log_level if log_level <= logging.DEBUG else logging.WARNING)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Child logger "ariadne.<name>", configuring the package logger on first use."""
    if not logging.getLogger(LOGGER_NAME).handlers:
        setup_logging()
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
