"""Logging setup for applications embedding the auth client."""

import logging
import sys
from typing import Optional

LOG_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}'
)


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Configure structured logging for the authclient package.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Falls back to LOG_LEVEL from the client settings.

    Returns:
        The package logger.
    """
    if log_level is None:
        from .config import get_settings
        log_level = get_settings().LOG_LEVEL

    logger = logging.getLogger("authclient")
    logger.setLevel(getattr(logging, log_level.upper()))

    if not any(getattr(h, "_authclient", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._authclient = True
        logger.addHandler(handler)

    return logger
