"""Pydantic models for API response serialization."""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    PROCESSING = "PROCESSING"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, ready for `jsonify`."""
        return self.model_dump(mode="json", by_alias=True)


class ActionMetadata(_CamelModel):
    """Summary of the action that produced a response."""
    action_type: str
    original_language: str | None = None
    target_language: str | None = None
    summary_type: str | None = None
    tone: str | None = None
    question_count: int | None = None


class ChatResponse(_CamelModel):
    """Outgoing chat response.

    On SUCCESS every field except `error_message` is populated; on ERROR
    only `status`, `timestamp`, `error_message` (and `session_id` when a
    session had already been resolved) are.
    """
    message_id: str | None = None
    content: str | None = None
    session_id: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    status: ResponseStatus = ResponseStatus.SUCCESS
    ai_model: str | None = None
    suggested_prompts: list[str] = Field(default_factory=list)
    action_metadata: ActionMetadata | None = None
    error_message: str | None = None
    tokens_used: int | None = None

    @classmethod
    def error(cls, message: str, session_id: str | None = None) -> "ChatResponse":
        return cls(status=ResponseStatus.ERROR, error_message=message, session_id=session_id)


class MessageView(_CamelModel):
    """One message in a session history."""
    message_id: str
    content: str
    sender: str
    timestamp: datetime
    action_type: str | None = None
    ai_model: str | None = None
    tokens_used: int | None = None


class SessionContextView(_CamelModel):
    current_subject: str | None = None
    preferred_language: str | None = None
    education_level: str | None = None
    last_action_type: str | None = None


class SessionView(_CamelModel):
    """Session summary, optionally with its full message history."""
    session_id: str
    user_id: str
    title: str | None = None
    created_at: datetime | None = None
    last_activity: datetime | None = None
    is_active: bool = True
    context: SessionContextView | None = None
    messages: list[MessageView] | None = None
