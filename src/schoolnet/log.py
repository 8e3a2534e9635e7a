"""schoolnet.log

Package logger. Everything in schoolnet logs through ``logging.getLogger("schoolnet")``.
"""
from __future__ import annotations

import logging
from typing import Union

__all__ = ["logger", "set_log_level"]

LOGGER_NAME = "schoolnet"


def _setup_logger():
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(h)
        logger.propagate = False
    return logger


logger = _setup_logger()


def set_log_level(level: Union[str, int]) -> None:
    """Set the package log level from a name ("debug", "INFO") or a number."""
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
