"""
Logging setup.

Stdlib logging carries the plugin plumbing; structlog carries the
load and request tracing. Both end up on the same handlers.
"""

import logging
import sys

import structlog

from .config import SecuritySettings, get_settings


def configure_logging(settings: SecuritySettings | None = None) -> None:
    """
    Configure stdlib logging and structlog.

    Usage:
        from specauth.core.logging import configure_logging
        configure_logging()
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
