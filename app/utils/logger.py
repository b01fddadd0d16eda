"""Structured logging configuration using structlog.

JSON output in production, colored console output in development.
Request IDs are picked up from contextvars bound by the request-id
middleware; session and user identifiers are bound per chat request
by the orchestrator.

Usage:
    from app.utils.logger import setup_logging

    setup_logging(log_level="INFO", log_format="json")

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("session_created", session_id="session_1a2b3c4d")
"""
from __future__ import annotations

import logging

import structlog

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog for the entire application.

    Args:
        log_level: Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_format: Output format: 'json' for production, 'console' for dev.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # stdlib logging for third-party libs
    logging.basicConfig(format="%(message)s", level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
