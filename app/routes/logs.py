"""Logs route: API endpoints for viewing conversation logs.

Read-only access to the per-session interaction logs written by the
ConversationLogger (prompts, actions, completion calls, errors).

Endpoints:
    GET /logs                  → List all session summaries
    GET /logs?withErrors=true  → Only sessions with at least one failed interaction
    GET /logs/<id>             → Full log for a specific session
"""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from app.middleware.error_handlers import error_response

logs_bp = Blueprint("logs", __name__)


def _conversation_logger():
    return current_app.config.get("CONVERSATION_LOGGER")


@logs_bp.route("/logs", methods=["GET"])
def list_logs():
    """List conversation log sessions with summaries."""
    conv_logger = _conversation_logger()
    if not conv_logger:
        return error_response("Conversation logging is disabled", 503)

    sessions = conv_logger.list_sessions()
    if request.args.get("withErrors", "").lower() in ("1", "true", "yes"):
        sessions = [s for s in sessions if s.get("summary", {}).get("total_errors", 0) > 0]

    return jsonify({"sessions": sessions, "count": len(sessions)})


@logs_bp.route("/logs/<session_id>", methods=["GET"])
def get_log(session_id):
    """Full conversation log for one session, or 404."""
    conv_logger = _conversation_logger()
    if not conv_logger:
        return error_response("Conversation logging is disabled", 503)

    log_data = conv_logger.get_session_log(session_id)
    if log_data is None:
        return error_response(f"No log found for session '{session_id}'", 404)

    return jsonify(log_data)
