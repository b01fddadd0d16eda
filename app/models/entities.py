"""SQLAlchemy ORM models for chat sessions and messages.

A session exclusively owns its messages: deleting a session row
cascades to its messages at the database level. Messages are
append-only and ordered by (timestamp, id).
"""
from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


USER_ID_MAX_LENGTH = 50
ACTION_TYPE_MAX_LENGTH = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class MessageSender(str, enum.Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


class ChatSessionEntity(Base):
    """A durable conversation between one user and the assistant."""

    __tablename__ = "chat_sessions"

    session_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(USER_ID_MAX_LENGTH), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_activity: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=utcnow)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    current_subject: Mapped[str | None] = mapped_column(String(100), nullable=True)
    preferred_language: Mapped[str | None] = mapped_column(String(50), nullable=True)
    education_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_action_type: Mapped[str | None] = mapped_column(String(ACTION_TYPE_MAX_LENGTH), nullable=True)

    messages: Mapped[list["ChatMessageEntity"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatMessageEntity.id",
    )

    def __repr__(self) -> str:
        return f"<ChatSessionEntity {self.session_id} user={self.user_id}>"


class ChatMessageEntity(Base):
    """One turn in a session. Never edited after insert."""

    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    session_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("chat_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[MessageSender] = mapped_column(Enum(MessageSender, native_enum=False, length=20), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    action_type: Mapped[str | None] = mapped_column(String(ACTION_TYPE_MAX_LENGTH), nullable=True)
    action_metadata: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tokens_used: Mapped[int | None] = mapped_column(Integer, nullable=True)

    session: Mapped[ChatSessionEntity] = relationship(back_populates="messages")

    def __repr__(self) -> str:
        return f"<ChatMessageEntity {self.message_id} {self.sender.value}>"
