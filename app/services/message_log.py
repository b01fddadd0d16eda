"""Message log: append-only storage of the turns in a session.

Wraps the SessionStore with the message-level operations the
orchestrator and context builder need.
"""
from __future__ import annotations

import json
import uuid
from typing import Any

import structlog

from app.models.entities import ChatMessageEntity, ChatSessionEntity, MessageSender, utcnow
from app.models.requests import ChatRequest
from app.services.session_store import SessionStore

logger = structlog.get_logger(__name__)


def generate_message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:8]}"


class MessageLog:
    """Records and reads the messages of a session.

    Args:
        store: Session/message store.
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def record_user_message(self, request: ChatRequest, session: ChatSessionEntity) -> ChatMessageEntity:
        message = ChatMessageEntity(
            message_id=generate_message_id(),
            session_id=session.session_id,
            content=request.prompt,
            sender=MessageSender.USER,
            timestamp=utcnow(),
            action_type=request.action_type,
        )
        self._store.append_message(message)
        logger.debug("user_message_saved", message_id=message.message_id, session_id=session.session_id)
        return message

    def record_assistant_message(
        self,
        content: str,
        request: ChatRequest,
        session: ChatSessionEntity,
        ai_model: str,
        tokens_used: int,
        action_metadata: dict[str, Any] | None = None,
    ) -> ChatMessageEntity:
        message = ChatMessageEntity(
            message_id=generate_message_id(),
            session_id=session.session_id,
            content=content,
            sender=MessageSender.ASSISTANT,
            timestamp=utcnow(),
            action_type=request.action_type,
            action_metadata=json.dumps(action_metadata) if action_metadata else None,
            ai_model=ai_model,
            tokens_used=tokens_used,
        )
        self._store.append_message(message)
        logger.debug(
            "assistant_message_saved",
            message_id=message.message_id,
            session_id=session.session_id,
            model=ai_model,
        )
        return message

    def recent_messages(self, session_id: str, limit: int) -> list[ChatMessageEntity]:
        """Return the last `limit` messages of a session, oldest first."""
        total = self._store.count_messages_in_session(session_id)
        messages = self._store.find_messages_in_session_ordered_by_time(session_id)
        if total <= limit:
            return messages
        return messages[-limit:]

    def all_messages(self, session_id: str) -> list[ChatMessageEntity]:
        return self._store.find_messages_in_session_ordered_by_time(session_id)
