"""Database engine and session factory setup.

Usage:
    engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)
    session_factory = make_session_factory(engine)
"""
from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.entities import Base

logger = structlog.get_logger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, preparing SQLite files and pragmas when needed.

    In-memory SQLite URLs share one connection across threads so every
    store call sees the same database.
    """
    url = make_url(database_url)
    kwargs: dict = {"echo": echo, "future": True}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, **kwargs)

    if url.get_backend_name() == "sqlite":
        # SQLite leaves FK enforcement (and ON DELETE CASCADE) off by default
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info("db_engine_created", backend=url.get_backend_name(), database=url.database)
    return engine


def init_db(engine: Engine) -> None:
    """Create tables that don't exist yet."""
    Base.metadata.create_all(engine)


def make_session_factory(engine: Engine) -> sessionmaker:
    # Entities stay readable after commit; the store hands them to callers
    return sessionmaker(bind=engine, expire_on_commit=False)
