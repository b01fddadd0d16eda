"""Centralized application configuration using Pydantic Settings.

Loads configuration from environment variables and `.env` file with
full validation, type coercion, and sensible defaults.

Action parameter defaults are configured here too, one field per
default, and frozen into an `ActionDefaults` snapshot at startup.

Usage:
    from app.config import get_settings

    settings = get_settings()  # cached singleton
    defaults = settings.action_defaults()
"""
from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from app.services.action_registry import ActionDefaults


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file.

    Required:
        OPENROUTER_API_KEY: Must be set; the app will refuse to start without it.

    All other fields have sensible defaults and are optional overrides.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # silently ignore unknown env vars
    )

    # ── Flask ──────────────────────────────────────────────────────────
    FLASK_ENV: str = Field(default="development", description="Flask environment (development/production)")
    FLASK_DEBUG: bool = Field(default=True, description="Enable Flask debug mode")
    SECRET_KEY: str = Field(default="change-me-in-production", description="Flask secret key for sessions")

    # ── Completion backend (OpenRouter-compatible) ────────────────────
    OPENROUTER_API_KEY: str = Field(..., description="OpenRouter API key (required)")
    OPENROUTER_BASE_URL: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL",
    )
    STANDARD_MODEL: str = Field(
        default="openai/gpt-3.5-turbo",
        description="Model used for generic chat, translation and summarization",
    )
    ADVANCED_MODEL: str = Field(
        default="openai/gpt-4",
        description="Higher-capability model used for rewriting and question generation",
    )
    LLM_TIMEOUT: int = Field(default=60, ge=1, le=300, description="Completion request timeout (seconds)")
    LLM_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    LLM_MAX_TOKENS: int = Field(default=1000, ge=1, description="Max tokens per completion")

    # ── Storage ───────────────────────────────────────────────────────
    DATABASE_URL: str = Field(
        default="sqlite:///data/educator_chat.db",
        description="SQLAlchemy database URL for sessions and messages",
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements")

    # ── Context / Suggestions ─────────────────────────────────────────
    HISTORY_WINDOW: int = Field(default=6, ge=1, le=50, description="Recent messages included in prompt context")
    SUGGESTED_PROMPTS_LIMIT: int = Field(default=5, ge=1, le=20, description="Suggested follow-ups per response")

    # ── Action defaults ───────────────────────────────────────────────
    TRANSLATE_TARGET_LANGUAGE: str = Field(default="Spanish")
    TRANSLATE_ORIGINAL_LANGUAGE: str = Field(default="auto-detect")
    TRANSLATE_TONE: str = Field(default="neutral")

    SUMMARIZE_SUMMARY_TYPE: str = Field(default="PARAGRAPH")
    SUMMARIZE_MAX_LENGTH: int = Field(default=200, ge=1, description="Advisory word budget")
    SUMMARIZE_FOCUS_AREA: str = Field(default="main_ideas")

    REWRITE_TARGET_AUDIENCE: str = Field(default="general")
    REWRITE_TONE: str = Field(default="professional")
    REWRITE_PURPOSE: str = Field(default="educational")

    QUESTION_COUNT: int = Field(default=5, ge=1)
    QUESTION_DIFFICULTY_LEVEL: str = Field(default="intermediate")
    QUESTION_TYPES: list[str] = Field(default_factory=lambda: ["multiple_choice", "short_answer"])
    QUESTION_COGNITIVE_LEVEL: list[str] = Field(
        default_factory=lambda: ["knowledge", "comprehension", "application"]
    )

    # ── Logging ───────────────────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    LOG_FORMAT: str = Field(default="json", description="Log output format ('json' for prod, 'console' for dev)")

    # ── Conversation Logging ─────────────────────────────────────────
    CONVERSATION_LOG_DIR: str = Field(default="logs/conversations", description="Directory for conversation log files")
    CONVERSATION_LOG_ENABLED: bool = Field(default=True, description="Enable conversation logging")

    # ── Validators ────────────────────────────────────────────────────

    @field_validator("OPENROUTER_API_KEY")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Ensure the API key is not empty or a placeholder."""
        v = v.strip()
        if not v or v in ("sk-or-v1-xxxxx", "your-api-key-here"):
            raise ValueError(
                "OPENROUTER_API_KEY must be set to a valid API key. "
                "Get one at https://openrouter.ai/keys"
            )
        return v

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Reject the default secret key in production."""
        env = info.data.get("FLASK_ENV", "development")
        if env == "production" and v == "change-me-in-production":
            raise ValueError(
                "SECRET_KEY must be changed from the default in production. "
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate log level."""
        v = v.upper().strip()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        v = v.lower().strip()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @field_validator("OPENROUTER_BASE_URL")
    @classmethod
    def validate_urls(cls, v: str) -> str:
        """Ensure base URLs don't have trailing slashes."""
        return v.rstrip("/")

    def action_defaults(self) -> "ActionDefaults":
        """Freeze the configured per-action defaults into an immutable snapshot."""
        from app.services.action_registry import ActionDefaults, ActionKind

        return ActionDefaults.from_mapping({
            ActionKind.TRANSLATE: {
                "targetLanguage": self.TRANSLATE_TARGET_LANGUAGE,
                "originalLanguage": self.TRANSLATE_ORIGINAL_LANGUAGE,
                "tone": self.TRANSLATE_TONE,
            },
            ActionKind.SUMMARIZE: {
                "summaryType": self.SUMMARIZE_SUMMARY_TYPE,
                "maxLength": self.SUMMARIZE_MAX_LENGTH,
                "focusArea": self.SUMMARIZE_FOCUS_AREA,
            },
            ActionKind.REWRITE: {
                "targetAudience": self.REWRITE_TARGET_AUDIENCE,
                "tone": self.REWRITE_TONE,
                "purpose": self.REWRITE_PURPOSE,
            },
            ActionKind.QUESTION_GENERATION: {
                "questionCount": self.QUESTION_COUNT,
                "difficultyLevel": self.QUESTION_DIFFICULTY_LEVEL,
                "questionTypes": list(self.QUESTION_TYPES),
                "cognitiveLevel": list(self.QUESTION_COGNITIVE_LEVEL),
            },
        })


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Uses `lru_cache` so the `.env` file is only read once.
    Call this everywhere instead of instantiating Settings directly.
    """
    return Settings()
