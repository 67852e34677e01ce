"""Logging setup and timing helpers."""

import logging
import time
from contextlib import contextmanager

import structlog

logger = structlog.get_logger()


def configure_logging(settings) -> None:
    """
    Configure structlog on top of the standard library logger.

    Args:
        settings: Object exposing ``log_level`` and ``log_format``
    """
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def log_duration(operation: str, **fields):
    """Log how long the wrapped block took, in milliseconds, even when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("Operation finished", operation=operation, duration_ms=round(elapsed_ms, 2), **fields)
