"""Centralized logging configuration."""
from __future__ import annotations

import sys

from loguru import logger


log_format = " | ".join(
    (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>",
        "<level>{level:<8}</level>",
        "<cyan>{name}::{function}:{line}</cyan>",
        "{message}",
    )
)


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with the SmartCalculator stderr sink."""
    logger.remove()
    logger.add(sys.stderr, format=log_format, level=level)
