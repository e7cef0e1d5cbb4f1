"""
Central logging configuration for clubcal.

Keeps clubcal's own loggers at INFO (or DEBUG on request) while quieting the
chattier third-party libraries used by the HTTP layer.
"""

import logging
import os
from typing import Optional

from .middleware import get_request_id


class CorrelationIdFilter(logging.Filter):
    """Add the current request's correlation ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def _env_debug() -> bool:
    return os.getenv("CLUBCAL_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def _level_from_name(name: Optional[str]) -> Optional[int]:
    """Return the numeric level for a standard level name, None otherwise."""
    if not name:
        return None
    return logging.getLevelNamesMapping().get(name.strip().upper())


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    default_level: str = "INFO",
) -> None:
    """
    Configure logging levels for clubcal.

    Expects the console handler from ``clubcal._init_logging`` to be installed
    already and attaches the request-ID filter to every root handler.

    Args:
        debug_mode: Whether to enable debug logging for clubcal modules
        force_debug: Override debug mode setting (None to use env var detection)
        default_level: Level name used when neither debug nor CLUBCAL_LOG_LEVEL applies

    Environment Variables:
        CLUBCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CLUBCAL_LOG_LEVEL: Override the log level (any standard level name)
    """
    if force_debug is not None:
        final_debug = force_debug
    elif _env_debug():
        final_debug = True
    else:
        final_debug = debug_mode

    level = logging.DEBUG if final_debug else (_level_from_name(default_level) or logging.INFO)
    env_level = _level_from_name(os.getenv("CLUBCAL_LOG_LEVEL"))
    if env_level is not None:
        level = env_level

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())

    logger_config: dict[str, int] = {
        "aiohttp.access": logging.WARNING,
        "aiohttp.server": logging.WARNING,
        "aiohttp.web": logging.INFO,
        "asyncio": logging.WARNING,
        "icalendar": logging.INFO,
        "clubcal": level,
    }
    for logger_name, logger_level in logger_config.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    if final_debug:
        root_logger.info("Debug logging enabled for clubcal modules")


def get_logging_status() -> dict[str, str]:
    """Return current levels of the root and key loggers."""
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("clubcal", "aiohttp.access", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
