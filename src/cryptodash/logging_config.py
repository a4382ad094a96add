"""Logging setup shared by the API process and the CLIs."""
from __future__ import annotations

import logging
from typing import Optional

from cryptodash.config import get_log_level

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s %(message)s"


def get_logger(level: Optional[str] = None) -> logging.Logger:
    """Return the package logger, attaching a stream handler on first use."""
    logger = logging.getLogger("cryptodash")
    if logger.handlers:
        return logger
    logger.setLevel(getattr(logging, (level or get_log_level()), logging.INFO))
    stream = logging.StreamHandler()
    stream.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream)
    logger.propagate = False
    return logger


def configure_logging(level: Optional[str] = None) -> None:
    """Idempotently configure the ``cryptodash`` logger hierarchy."""
    logger = get_logger(level)
    if level:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
