"""Chat blueprint: main user-facing routes.

Routes:
    POST /api/chat/message                      → Process a chat message
    POST /api/chat/action                       → Process a structured action
    GET  /api/chat/history/<session_id>         → Session with full message history
    GET  /api/chat/sessions                     → Active sessions for a user
    POST /api/chat/sessions/<session_id>/deactivate → Deactivate a session
    GET  /api/chat/prompts                      → Suggested prompts
    POST /api/chat/prompts/custom               → Add a custom suggested prompt

Chat and action requests always answer 200 with a ChatResponse; a
pipeline failure is reported through `status: "ERROR"` and
`errorMessage`. Malformed bodies are rejected with 400/422 before the
pipeline runs.
"""
from __future__ import annotations

import structlog
from flask import Blueprint, current_app, jsonify, request

from app.middleware.error_handlers import error_response
from app.models.requests import ChatRequest, CustomPromptRequest
from app.utils.sanitizer import normalize_identifier, sanitize_user_input

logger = structlog.get_logger(__name__)

chat_bp = Blueprint("chat", __name__, url_prefix="/api/chat")


def _parse_chat_request() -> ChatRequest | None:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None

    # pydantic.ValidationError propagates to the global 422 handler
    chat_request = ChatRequest.model_validate(data)

    # Blank prompts are left for the orchestrator to report with other violations
    if chat_request.prompt.strip():
        chat_request = chat_request.model_copy(
            update={"prompt": sanitize_user_input(chat_request.prompt)}
        )
    return chat_request


def _require_user_id():
    return normalize_identifier(request.args.get("userId"))


@chat_bp.route("/message", methods=["POST"])
def send_message():
    """Process a chat message and return a ChatResponse.

    Request JSON:
        {
            "prompt": "Plan a fractions lesson",
            "userId": "u1",
            "sessionId": "session_1a2b3c4d",        // optional
            "actionType": "SUMMARIZE",             // optional
            "actionParams": {"maxLength": 120},    // optional
            "educationalContext": {"subject": "math", "gradeLevel": "5"}
        }
    """
    chat_request = _parse_chat_request()
    if chat_request is None:
        return error_response("Invalid JSON body", 400)

    orchestrator = current_app.config["ORCHESTRATOR"]
    response = orchestrator.process_chat(chat_request)
    return jsonify(response.to_json_dict())


@chat_bp.route("/action", methods=["POST"])
def perform_action():
    """Same as /message, but an actionType is mandatory."""
    chat_request = _parse_chat_request()
    if chat_request is None:
        return error_response("Invalid JSON body", 400)
    if not chat_request.action_type:
        return error_response("Action type is required for action requests", 400)

    logger.info("action_request_received", action_type=chat_request.action_type)
    orchestrator = current_app.config["ORCHESTRATOR"]
    response = orchestrator.process_chat(chat_request)
    return jsonify(response.to_json_dict())


@chat_bp.route("/history/<session_id>", methods=["GET"])
def get_history(session_id: str):
    """Return a session and its messages; 404 when missing or not the caller's."""
    user_id = _require_user_id()
    if not user_id:
        return error_response("userId query parameter is required", 400)

    session_manager = current_app.config["SESSION_MANAGER"]
    view = session_manager.get_history(session_id, user_id)
    return jsonify(view.to_json_dict())


@chat_bp.route("/sessions", methods=["GET"])
def list_sessions():
    user_id = _require_user_id()
    if not user_id:
        return error_response("userId query parameter is required", 400)

    session_manager = current_app.config["SESSION_MANAGER"]
    sessions = session_manager.list_active_sessions(user_id)
    return jsonify({
        "sessions": [s.to_json_dict() for s in sessions],
        "count": len(sessions),
    })


@chat_bp.route("/sessions/<session_id>/deactivate", methods=["POST"])
def deactivate_session(session_id: str):
    user_id = _require_user_id()
    if not user_id:
        return error_response("userId query parameter is required", 400)

    session_manager = current_app.config["SESSION_MANAGER"]
    session_manager.deactivate(session_id, user_id)
    return jsonify({"success": True, "sessionId": session_id})


@chat_bp.route("/prompts", methods=["GET"])
def suggested_prompts():
    """Suggested prompts for an optional subject and action type."""
    provider = current_app.config["SUGGESTED_PROMPTS"]
    prompts = provider.suggest(
        normalize_identifier(request.args.get("subject")),
        normalize_identifier(request.args.get("actionType")),
    )
    return jsonify({"prompts": prompts, "count": len(prompts)})


@chat_bp.route("/prompts/custom", methods=["POST"])
def add_custom_prompt():
    """Add a custom suggested prompt to a category.

    Request JSON:
        { "category": "math", "prompt": "Create a fractions scavenger hunt" }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Invalid JSON body", 400)

    body = CustomPromptRequest.model_validate(data)
    provider = current_app.config["SUGGESTED_PROMPTS"]
    provider.add_custom(body.category, body.prompt)
    return jsonify({"success": True, "category": body.category.lower()}), 201
