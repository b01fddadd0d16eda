"""Global Flask error handlers for consistent JSON error responses.

Registers handlers for standard HTTP errors, request-body validation
failures, and EducatorAssistantError exceptions, ensuring the API
always returns:
    { "success": false, "error": { "message": "...", "code": <int> } }

Chat pipeline failures never reach these handlers; the orchestrator
turns them into ERROR ChatResponses itself.

Usage:
    from app.middleware.error_handlers import register_error_handlers
    register_error_handlers(app)
"""
from __future__ import annotations

from flask import Flask, g, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

import structlog

from app.utils.exceptions import EducatorAssistantError, RequestValidationError

logger = structlog.get_logger(__name__)


def error_response(message: str, code: int, details: list[str] | None = None):
    """Create a standardized JSON error response.

    Args:
        message: Human-readable error message.
        code: HTTP status code.
        details: Optional individual violations.

    Returns:
        Tuple of (response, status_code).
    """
    error: dict = {"message": message, "code": code}
    if details:
        error["details"] = details
    request_id = g.get("request_id")
    if request_id:
        error["requestId"] = request_id
    return jsonify({"success": False, "error": error}), code


def validation_details(e: ValidationError) -> list[str]:
    """Flatten pydantic errors into `field: message` strings."""
    return [
        f"{'.'.join(str(loc) for loc in err.get('loc', ())) or 'body'}: {err.get('msg', 'invalid')}"
        for err in e.errors()
    ]


def register_error_handlers(app: Flask) -> None:
    """Register global error handlers on the Flask app.

    Args:
        app: Flask application instance.
    """

    # ── Standard HTTP Errors ──────────────────────────────────────────

    @app.errorhandler(400)
    def bad_request(e):
        return error_response(getattr(e, "description", None) or "Bad request", 400)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(e):
        logger.error("unhandled_server_error", error=str(e), exc_info=True)
        return error_response("Internal server error", 500)

    # ── Request Validation ────────────────────────────────────────────

    @app.errorhandler(ValidationError)
    def handle_body_validation_error(e: ValidationError):
        details = validation_details(e)
        logger.info("request_body_invalid", errors=details)
        return error_response("Invalid request body", 422, details)

    @app.errorhandler(RequestValidationError)
    def handle_request_validation_error(e: RequestValidationError):
        return error_response(e.message, e.status_code, e.errors)

    # ── Custom Application Errors ─────────────────────────────────────

    @app.errorhandler(EducatorAssistantError)
    def handle_application_error(e: EducatorAssistantError):
        """Handle all other EducatorAssistantError exceptions."""
        logger.warning(
            "application_error",
            error=e.message,
            error_type=type(e).__name__,
            status_code=e.status_code,
        )
        return error_response(e.message, e.status_code)

    # ── Catch-all for unexpected Werkzeug HTTP exceptions ─────────────

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        """Catch any HTTPException not explicitly handled above."""
        return error_response(e.description or "Unknown error", e.code or 500)

    # ── Catch-all for truly unhandled exceptions ──────────────────────

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        """Last resort handler for unhandled exceptions."""
        logger.error(
            "unexpected_error",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return error_response("An unexpected error occurred", 500)
