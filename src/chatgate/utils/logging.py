"""Logging Configuration"""
import logging
from typing import Optional, TextIO

import structlog

from chatgate.config import get_settings


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    cache_loggers: bool = True,
    log_file: Optional[TextIO] = None,
) -> None:
    """Setup structured logging with structlog

    Short-lived processes such as the CLI pass ``cache_loggers=False`` so
    loggers always write to the current stream. ``log_file`` redirects
    output away from stdout, which the CLI keeps for replies.
    """
    settings = get_settings()
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    fmt = log_format or settings.log_format

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=None,
        level=level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=log_file),
        cache_logger_on_first_use=cache_loggers,
    )
