"""Structured JSON logging configuration."""

import logging
import sys
from pythonjsonlogger import jsonlogger


def setup_logger(name: str = "bookmarks_exporter", level: str = "INFO") -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def route_uvicorn_logs(level: str = "INFO") -> None:
    """
    Send uvicorn's server and access logs through the JSON handler.

    uvicorn.error and uvicorn.access propagate into the "uvicorn" logger,
    so configuring the parent is enough.

    Args:
        level: Log level for the uvicorn loggers
    """
    setup_logger("uvicorn", level)
    for child in ("uvicorn.error", "uvicorn.access"):
        child_logger = logging.getLogger(child)
        child_logger.handlers = []
        child_logger.propagate = True
