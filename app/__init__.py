"""Educator Assistant Chat: Flask Application Package.

This is the main application package. The `create_app()` factory function
initializes the Flask application with all configurations, middleware,
services, and blueprints.
"""
from __future__ import annotations

import structlog
from flask import Flask
from flask_cors import CORS

from app.config import get_settings, Settings
from app.utils.exceptions import StoreError
from app.utils.logger import setup_logging
from app.middleware.request_id import init_request_id_middleware
from app.middleware.error_handlers import register_error_handlers


def create_app(settings: Settings | None = None) -> Flask:
    """Application factory pattern.

    Creates and configures the Flask application with:
    - Pydantic-based configuration loading
    - Structured logging (structlog)
    - Request ID middleware
    - Global error handlers
    - CORS configuration
    - Service initialization (database, completion backend, orchestrator)
    - Startup validation
    - Blueprint registration (health, chat, logs)

    Args:
        settings: Optional settings override (tests); defaults to `get_settings()`.

    Returns:
        Configured Flask application instance.
    """
    # Load validated config
    settings = settings or get_settings()

    # ── Logging (must be first so all subsequent logs are formatted) ──
    setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
    logger = structlog.get_logger(__name__)

    # ── Flask app ─────────────────────────────────────────────────────
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.SECRET_KEY
    app.config["FLASK_DEBUG"] = settings.FLASK_DEBUG

    # Store settings on app for access in blueprints
    app.config["SETTINGS"] = settings

    # ── Middleware ─────────────────────────────────────────────────────
    init_request_id_middleware(app)
    register_error_handlers(app)

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/api/chat/*": {"origins": "*"},
        r"/health": {"origins": "*"},
    })

    # ── Services ──────────────────────────────────────────────────────
    _init_services(app, settings)

    # ── Startup validation ────────────────────────────────────────────
    _validate_startup(app, logger)

    # ── Blueprints ────────────────────────────────────────────────────
    from app.routes.health import health_bp
    from app.routes.chat import chat_bp
    from app.routes.logs import logs_bp
    app.register_blueprint(health_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(logs_bp)

    logger.info(
        "app_started",
        env=settings.FLASK_ENV,
        standard_model=settings.STANDARD_MODEL,
        advanced_model=settings.ADVANCED_MODEL,
        log_level=settings.LOG_LEVEL,
    )

    return app


def _init_services(app: Flask, settings: Settings) -> None:
    """Initialize the store, completion backend, and chat orchestrator.

    All services are stored on `app.config` for access via `current_app`.

    Args:
        app: Flask application instance.
        settings: Application settings.
    """
    from app.db import create_db_engine, init_db, make_session_factory
    from app.services.action_processors import ActionProcessors
    from app.services.chat_orchestrator import ChatOrchestrator
    from app.services.context_builder import ContextBuilder
    from app.services.conversation_logger import ConversationLogger
    from app.services.llm_service import LLMService
    from app.services.message_log import MessageLog
    from app.services.parameter_resolver import ParameterResolver
    from app.services.session_manager import SessionManager
    from app.services.session_store import SQLAlchemySessionStore
    from app.services.suggested_prompts import SuggestedPromptsProvider

    logger = structlog.get_logger(__name__)
    logger.info("initializing_services")

    # Storage
    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    init_db(engine)
    store = SQLAlchemySessionStore(make_session_factory(engine))

    # Completion backend
    llm_service = LLMService(
        api_key=settings.OPENROUTER_API_KEY,
        model=settings.STANDARD_MODEL,
        base_url=settings.OPENROUTER_BASE_URL,
        timeout=settings.LLM_TIMEOUT,
        temperature=settings.LLM_TEMPERATURE,
        max_tokens=settings.LLM_MAX_TOKENS,
    )

    # Pipeline collaborators
    message_log = MessageLog(store)
    session_manager = SessionManager(store, message_log)
    resolver = ParameterResolver(settings.action_defaults())
    context_builder = ContextBuilder(message_log, history_window=settings.HISTORY_WINDOW)
    processors = ActionProcessors(
        llm_service,
        resolver,
        context_builder,
        standard_model=settings.STANDARD_MODEL,
        advanced_model=settings.ADVANCED_MODEL,
    )
    suggested_prompts = SuggestedPromptsProvider(limit=settings.SUGGESTED_PROMPTS_LIMIT)

    # Conversation Logger (optional)
    conv_logger = None
    if settings.CONVERSATION_LOG_ENABLED:
        conv_logger = ConversationLogger(log_dir=settings.CONVERSATION_LOG_DIR)

    # Chat Orchestrator
    orchestrator = ChatOrchestrator(
        session_manager,
        message_log,
        processors,
        resolver,
        context_builder,
        suggested_prompts,
        conversation_logger=conv_logger,
    )

    # Store on app config for access via current_app
    app.config["ORCHESTRATOR"] = orchestrator
    app.config["SESSION_MANAGER"] = session_manager
    app.config["SUGGESTED_PROMPTS"] = suggested_prompts
    app.config["SESSION_STORE"] = store
    app.config["LLM_SERVICE"] = llm_service
    app.config["CONVERSATION_LOGGER"] = conv_logger
    app.config["DB_ENGINE"] = engine

    logger.info("services_initialized")


def _validate_startup(app: Flask, logger) -> None:
    """Run startup validation and warn early if the database is unreachable.

    Args:
        app: Flask application instance with services initialized.
        logger: Structlog logger instance.
    """
    logger.info("startup_validation", phase="begin")

    store = app.config["SESSION_STORE"]
    try:
        store.ping()
        logger.info("startup_check", dependency="database", status="ok")
    except StoreError as e:
        logger.warning("startup_check_failed", dependency="database", error=e.message)

    logger.info("startup_validation", phase="complete")
