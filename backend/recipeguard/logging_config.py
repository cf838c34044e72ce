"""Structured logging setup shared by every recipeguard entry point."""

import logging

import structlog

from recipeguard.config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog: JSON lines in production, pretty console output in DEBUG."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
