"""Session/message store: persistence for conversation sessions.

`SessionStore` is the contract the rest of the service depends on;
`SQLAlchemySessionStore` implements it over any SQLAlchemy database.
Each operation runs in its own transaction, so a message append is
atomic. Database errors are logged with their cause and re-raised as
StoreError, which carries a generic message only.

Usage:
    store = SQLAlchemySessionStore(make_session_factory(engine))
    session = store.find_session_by_id_and_user("session_1a2b3c4d", "u1")
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models.entities import ChatMessageEntity, ChatSessionEntity
from app.utils.exceptions import StoreError

logger = structlog.get_logger(__name__)


class SessionStore:
    """Persistence contract for sessions and their messages."""

    def find_session(self, session_id: str) -> ChatSessionEntity | None:
        raise NotImplementedError

    def find_session_by_id_and_user(self, session_id: str, user_id: str) -> ChatSessionEntity | None:
        raise NotImplementedError

    def find_active_sessions_by_user(self, user_id: str) -> list[ChatSessionEntity]:
        raise NotImplementedError

    def save_session(self, session: ChatSessionEntity) -> ChatSessionEntity:
        raise NotImplementedError

    def append_message(self, message: ChatMessageEntity) -> ChatMessageEntity:
        raise NotImplementedError

    def count_messages_in_session(self, session_id: str) -> int:
        raise NotImplementedError

    def find_messages_in_session_ordered_by_time(self, session_id: str) -> list[ChatMessageEntity]:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError


class SQLAlchemySessionStore(SessionStore):
    """SessionStore backed by SQLAlchemy ORM sessions.

    Args:
        session_factory: `sessionmaker` configured with expire_on_commit=False.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory.begin() as db:
                yield db
        except SQLAlchemyError as e:
            logger.error("store_operation_failed", operation=operation, error=str(e), exc_info=True)
            raise StoreError(operation) from e

    # ── Sessions ──────────────────────────────────────────────────────

    def find_session(self, session_id: str) -> ChatSessionEntity | None:
        with self._transaction("find_session") as db:
            return db.get(ChatSessionEntity, session_id)

    def find_session_by_id_and_user(self, session_id: str, user_id: str) -> ChatSessionEntity | None:
        stmt = select(ChatSessionEntity).where(
            ChatSessionEntity.session_id == session_id,
            ChatSessionEntity.user_id == user_id,
        )
        with self._transaction("find_session_by_id_and_user") as db:
            return db.execute(stmt).scalars().first()

    def find_active_sessions_by_user(self, user_id: str) -> list[ChatSessionEntity]:
        stmt = (
            select(ChatSessionEntity)
            .where(ChatSessionEntity.user_id == user_id, ChatSessionEntity.is_active.is_(True))
            .order_by(ChatSessionEntity.last_activity.desc())
        )
        with self._transaction("find_active_sessions_by_user") as db:
            return list(db.execute(stmt).scalars().all())

    def save_session(self, session: ChatSessionEntity) -> ChatSessionEntity:
        with self._transaction("save_session") as db:
            return db.merge(session)

    # ── Messages ──────────────────────────────────────────────────────

    def append_message(self, message: ChatMessageEntity) -> ChatMessageEntity:
        with self._transaction("append_message") as db:
            db.add(message)
        return message

    def count_messages_in_session(self, session_id: str) -> int:
        stmt = select(func.count()).select_from(ChatMessageEntity).where(
            ChatMessageEntity.session_id == session_id
        )
        with self._transaction("count_messages_in_session") as db:
            return db.execute(stmt).scalar_one()

    def find_messages_in_session_ordered_by_time(self, session_id: str) -> list[ChatMessageEntity]:
        stmt = (
            select(ChatMessageEntity)
            .where(ChatMessageEntity.session_id == session_id)
            .order_by(ChatMessageEntity.timestamp.asc(), ChatMessageEntity.id.asc())
        )
        with self._transaction("find_messages_in_session_ordered_by_time") as db:
            return list(db.execute(stmt).scalars().all())

    # ── Health ────────────────────────────────────────────────────────

    def ping(self) -> bool:
        with self._transaction("ping") as db:
            db.execute(select(1))
        return True
