"""Session manager: resolves, creates, and updates conversation sessions.

Sessions are looked up by (session id, user id); a missing or foreign
session id silently starts a new session. Sessions are only ever
deactivated, never deleted.

Usage:
    manager = SessionManager(store, message_log)
    session = manager.resolve(request)
    ...
    manager.record_activity(session, request)
"""
from __future__ import annotations

import uuid

import structlog

from app.models.entities import ChatSessionEntity, utcnow
from app.models.requests import ChatRequest
from app.models.responses import MessageView, SessionContextView, SessionView
from app.services.message_log import MessageLog
from app.services.session_store import SessionStore
from app.utils.exceptions import AccessDeniedError, SessionNotFoundError

logger = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 50
DEFAULT_TITLE = "New Chat Session"
DEFAULT_LANGUAGE = "English"

_TITLE_PREFIX_LENGTH = TITLE_MAX_LENGTH - 3
# Break at a space only if it keeps more than this many characters
_MIN_WORD_BREAK = 20


def generate_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:8]}"


def generate_session_title(prompt: str | None) -> str:
    """Derive a session title from the first prompt.

    Prompts of at most 50 characters are used verbatim. Longer prompts
    are cut to 47 characters, backed off to the last space when that
    space sits past position 20, and suffixed with '...'.

    Examples:
        >>> generate_session_title("Plan a fractions lesson")
        'Plan a fractions lesson'
        >>> generate_session_title("")
        'New Chat Session'
    """
    if prompt is None or not prompt.strip():
        return DEFAULT_TITLE

    clean = prompt.strip()
    if len(clean) <= TITLE_MAX_LENGTH:
        return clean

    truncated = clean[:_TITLE_PREFIX_LENGTH]
    last_space = truncated.rfind(" ")
    if last_space > _MIN_WORD_BREAK:
        return truncated[:last_space] + "..."
    return truncated + "..."


def infer_preferred_language(request: ChatRequest) -> str:
    """targetLanguage action param, else educational-context language, else English."""
    params = request.action_params or {}
    if params.get("targetLanguage"):
        return str(params["targetLanguage"])

    context = request.educational_context or {}
    if context.get("language"):
        return str(context["language"])

    return DEFAULT_LANGUAGE


class SessionManager:
    """Session lifecycle on top of the SessionStore.

    Args:
        store: Session/message store.
        message_log: Used to load message history for history views.
    """

    def __init__(self, store: SessionStore, message_log: MessageLog) -> None:
        self._store = store
        self._messages = message_log

    # ── Pipeline operations ───────────────────────────────────────────

    def resolve(self, request: ChatRequest) -> ChatSessionEntity:
        """Return the caller's existing session or create a new one."""
        if request.session_id:
            existing = self._store.find_session_by_id_and_user(request.session_id, request.user_id)
            if existing is not None:
                return existing
            logger.info(
                "session_not_found_creating_new",
                requested_session_id=request.session_id,
                user_id=request.user_id,
            )
        return self.create_session(request)

    def create_session(self, request: ChatRequest) -> ChatSessionEntity:
        now = utcnow()
        session = ChatSessionEntity(
            session_id=generate_session_id(),
            user_id=request.user_id,
            title=generate_session_title(request.prompt),
            created_at=now,
            last_activity=now,
            is_active=True,
            preferred_language=infer_preferred_language(request),
        )
        saved = self._store.save_session(session)
        logger.info("session_created", session_id=saved.session_id, user_id=saved.user_id)
        return saved

    def record_activity(self, session: ChatSessionEntity, request: ChatRequest) -> ChatSessionEntity:
        """Touch the session and overlay subject/grade level from the request."""
        session.last_activity = utcnow()
        session.last_action_type = request.action_type

        context = request.educational_context or {}
        if context.get("subject") is not None:
            session.current_subject = str(context["subject"])
            logger.debug("session_subject_updated", session_id=session.session_id, subject=session.current_subject)
        if context.get("gradeLevel") is not None:
            session.education_level = str(context["gradeLevel"])

        return self._store.save_session(session)

    # ── Queries ───────────────────────────────────────────────────────

    def get_owned_session(self, session_id: str, user_id: str) -> ChatSessionEntity:
        """Fetch a session the user owns.

        Raises:
            SessionNotFoundError: No such session.
            AccessDeniedError: Session belongs to someone else (same 404 shape).
        """
        session = self._store.find_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.user_id != user_id:
            logger.warning("session_access_denied", session_id=session_id, user_id=user_id)
            raise AccessDeniedError(session_id)
        return session

    def list_active_sessions(self, user_id: str) -> list[SessionView]:
        return [self._to_view(s) for s in self._store.find_active_sessions_by_user(user_id)]

    def get_history(self, session_id: str, user_id: str) -> SessionView:
        session = self.get_owned_session(session_id, user_id)
        messages = self._messages.all_messages(session_id)
        return self._to_view(session, messages=[
            MessageView(
                message_id=m.message_id,
                content=m.content,
                sender=m.sender.value,
                timestamp=m.timestamp,
                action_type=m.action_type,
                ai_model=m.ai_model,
                tokens_used=m.tokens_used,
            )
            for m in messages
        ])

    def deactivate(self, session_id: str, user_id: str) -> None:
        session = self.get_owned_session(session_id, user_id)
        session.is_active = False
        self._store.save_session(session)
        logger.info("session_deactivated", session_id=session_id, user_id=user_id)

    @staticmethod
    def _to_view(session: ChatSessionEntity, messages: list[MessageView] | None = None) -> SessionView:
        return SessionView(
            session_id=session.session_id,
            user_id=session.user_id,
            title=session.title,
            created_at=session.created_at,
            last_activity=session.last_activity,
            is_active=session.is_active,
            context=SessionContextView(
                current_subject=session.current_subject,
                preferred_language=session.preferred_language,
                education_level=session.education_level,
                last_action_type=session.last_action_type,
            ),
            messages=messages,
        )
