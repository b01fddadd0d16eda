"""Health check endpoint for application and dependency monitoring.

Exposes GET /health returning the status of the database and the
completion backend configuration. Used by Docker HEALTHCHECK and
monitoring systems. The completion backend is not called; only its
configuration is reported.

Response format:
    {
        "status": "healthy" | "degraded",
        "version": "1.0.0",
        "dependencies": {
            "database": "ok" | "error: ...",
            "completion_backend": "configured",
        },
        "models": {"standard": "...", "advanced": "..."}
    }
"""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify

import structlog

from app.utils.exceptions import StoreError

logger = structlog.get_logger(__name__)

health_bp = Blueprint("health", __name__)

APP_VERSION = "1.0.0"


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Application health check endpoint.

    Returns:
        200 if the database answers.
        503 otherwise.
    """
    settings = current_app.config["SETTINGS"]
    checks: dict[str, str] = {}

    try:
        current_app.config["SESSION_STORE"].ping()
        checks["database"] = "ok"
    except StoreError as e:
        logger.warning("health_check_failed", dependency="database", error=e.message)
        checks["database"] = f"error: {e.message}"

    checks["completion_backend"] = "configured" if settings.OPENROUTER_API_KEY else "missing api key"

    healthy = checks["database"] == "ok"

    response = {
        "status": "healthy" if healthy else "degraded",
        "version": APP_VERSION,
        "dependencies": checks,
        "models": {
            "standard": settings.STANDARD_MODEL,
            "advanced": settings.ADVANCED_MODEL,
        },
    }

    return jsonify(response), 200 if healthy else 503
