"""Shared pytest fixtures for the educator assistant test suite.

Provides reusable fixtures for:
- Settings overrides (in-memory SQLite, logging to a tmp dir)
- An in-memory SQLAlchemy session store
- The pipeline collaborators wired together around a mocked LLMService
- Flask app and test client
"""
import random
from unittest.mock import MagicMock

import pytest

from app import create_app
from app.config import Settings
from app.db import create_db_engine, init_db, make_session_factory
from app.models.requests import ChatRequest
from app.services.action_processors import ActionProcessors
from app.services.chat_orchestrator import ChatOrchestrator
from app.services.context_builder import ContextBuilder
from app.services.llm_service import LLMService
from app.services.message_log import MessageLog
from app.services.parameter_resolver import ParameterResolver
from app.services.session_manager import SessionManager
from app.services.session_store import SQLAlchemySessionStore
from app.services.suggested_prompts import SuggestedPromptsProvider

STANDARD_MODEL = "test/standard-model"
ADVANCED_MODEL = "test/advanced-model"


@pytest.fixture
def settings(tmp_path):
    """Test settings: in-memory database, logs under tmp_path."""
    return Settings(
        _env_file=None,
        OPENROUTER_API_KEY="sk-or-v1-test-key-12345",
        DATABASE_URL="sqlite:///:memory:",
        STANDARD_MODEL=STANDARD_MODEL,
        ADVANCED_MODEL=ADVANCED_MODEL,
        CONVERSATION_LOG_DIR=str(tmp_path / "conversations"),
        LOG_LEVEL="WARNING",
        LOG_FORMAT="console",
    )


@pytest.fixture
def store():
    """A fresh in-memory SQLite store per test."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield SQLAlchemySessionStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def message_log(store):
    return MessageLog(store)


@pytest.fixture
def session_manager(store, message_log):
    return SessionManager(store, message_log)


@pytest.fixture
def resolver(settings):
    return ParameterResolver(settings.action_defaults())


@pytest.fixture
def context_builder(message_log):
    return ContextBuilder(message_log, history_window=6)


@pytest.fixture
def mock_llm():
    """Create a mock LLMService."""
    llm = MagicMock(spec=LLMService)
    llm.complete.return_value = "Here is a helpful answer."
    return llm


@pytest.fixture
def processors(mock_llm, resolver, context_builder):
    return ActionProcessors(
        mock_llm,
        resolver,
        context_builder,
        standard_model=STANDARD_MODEL,
        advanced_model=ADVANCED_MODEL,
    )


@pytest.fixture
def suggested_prompts():
    return SuggestedPromptsProvider(limit=5, rng=random.Random(7))


@pytest.fixture
def orchestrator(session_manager, message_log, processors, resolver, context_builder, suggested_prompts):
    """A ChatOrchestrator over the in-memory store and mocked LLM."""
    return ChatOrchestrator(
        session_manager,
        message_log,
        processors,
        resolver,
        context_builder,
        suggested_prompts,
    )


@pytest.fixture
def make_request():
    """Factory for ChatRequest objects with sensible defaults."""
    def _make(prompt="Plan a lesson on fractions", user_id="u1", **kwargs):
        return ChatRequest(prompt=prompt, user_id=user_id, **kwargs)
    return _make


@pytest.fixture
def app(settings, mock_llm, monkeypatch):
    """Create a Flask application instance for testing, with a mocked LLM."""
    monkeypatch.setattr("app.services.llm_service.LLMService", lambda **kwargs: mock_llm)
    app = create_app(settings)
    app.config["TESTING"] = True
    yield app
    app.config["DB_ENGINE"].dispose()


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
