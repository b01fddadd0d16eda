"""Request ID middleware for log correlation.

Injects a unique X-Request-ID into every incoming request so all log
lines for one chat request (session resolution, completion call,
persistence) can be correlated. A client-supplied X-Request-ID is
reused when it looks sane; otherwise a new UUID is generated.

Usage:
    from app.middleware.request_id import init_request_id_middleware
    init_request_id_middleware(app)
"""
from __future__ import annotations

import time
import uuid

import structlog
from flask import Flask, g, request

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


def _incoming_request_id() -> str:
    candidate = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if candidate and len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable():
        return candidate
    return str(uuid.uuid4())


def init_request_id_middleware(app: Flask) -> None:
    """Register before/after hooks for request ID tracing.

    Args:
        app: Flask application instance.
    """
    logger = structlog.get_logger(__name__)

    @app.before_request
    def inject_request_id() -> None:
        """Inject request ID into Flask's g object and structlog context."""
        request_id = _incoming_request_id()
        g.request_id = request_id
        g.request_started = time.monotonic()

        # Bind request_id to structlog context for all logs in this request
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )

        logger.debug("request_started")

    @app.after_request
    def attach_request_id(response):
        """Attach request ID to response headers and log completion."""
        response.headers[REQUEST_ID_HEADER] = g.get("request_id", "unknown")

        started = g.get("request_started")
        logger.info(
            "request_completed",
            status=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2) if started else None,
        )
        return response

    @app.teardown_request
    def clear_request_context(exc) -> None:
        structlog.contextvars.clear_contextvars()
