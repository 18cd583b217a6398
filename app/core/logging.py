"""Logging configuration (loguru)."""

import sys

from loguru import logger

from app.core.config import settings

log_format = " | ".join(
    (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>",
        "<level>{level:<8}</level>",
        "<cyan>{name}:{function}:{line}</cyan>",
        "{message}",
    )
)


def configure_logging(level: str | None = None) -> None:
    # Replace loguru's default handler so API and worker share one format
    logger.remove()
    logger.add(sys.stderr, format=log_format, level=(level or settings.LOG_LEVEL).upper())
