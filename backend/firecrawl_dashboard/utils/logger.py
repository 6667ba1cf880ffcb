"""Logging for the dashboard API, CLI and frontend.

All loggers hang off the ``firecrawl-dashboard`` root so one level setting
covers every component. ``get_logger("proxy")`` returns the
``firecrawl-dashboard.proxy`` child, which writes through the root handler.
"""
import logging
import sys
from typing import Optional, Union

from ..config import settings

ROOT_LOGGER_NAME = "firecrawl-dashboard"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every HTTP exchange at INFO
CHATTY_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: Optional[Union[int, str]]) -> int:
    """Turn a level name or number into a logging level, defaulting to INFO."""
    if level is None:
        level = settings.log_level
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = ROOT_LOGGER_NAME, level: Optional[Union[int, str]] = None
) -> logging.Logger:
    """Set up and configure a logger.

    Args:
        name: Logger name
        level: Logging level or level name (defaults to settings.log_level)

    Returns:
        Configured logger instance
    """
    level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    # Request lines from the HTTP client only show up when debugging
    for chatty in CHATTY_LOGGERS:
        logging.getLogger(chatty).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return logger


def get_logger(component: str) -> logging.Logger:
    """Child logger for one component, e.g. ``get_logger("firecrawl")``."""
    return logging.getLogger(ROOT_LOGGER_NAME).getChild(component)


# Global logger instance
logger = setup_logger()
