"""
Logging configuration for the categorizer.
Every module gets a stdout logger with the same format and level.
"""
import logging
import os
import sys
from typing import Dict, Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers created through setup_logger, so the level can be changed at startup
_configured: Dict[str, logging.Logger] = {}


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env LOG_LEVEL or INFO.

    Returns:
        Configured logger instance
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    logger.propagate = False

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    _configured[name] = logger
    return logger


def set_log_level(level: str) -> None:
    """Apply a log level to every logger configured so far."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    for logger in _configured.values():
        logger.setLevel(numeric)
