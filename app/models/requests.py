"""Pydantic models for API request validation.

Wire names are camelCase (`userId`, `actionType`, ...); Python code
uses the snake_case attribute names.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.entities import ACTION_TYPE_MAX_LENGTH, USER_ID_MAX_LENGTH
from app.utils.sanitizer import MAX_PROMPT_LENGTH, normalize_identifier


class ChatRequest(BaseModel):
    """Incoming chat or action request.

    Required-field checks (non-empty prompt and user id) are done by the
    orchestrator so they can be reported together with parameter errors.

    Attributes:
        prompt: The educator's request text (at most 4000 chars).
        session_id: Optional session ID for conversation continuity.
        user_id: Owning user identifier.
        action_type: Optional action kind name (case-insensitive).
        action_params: Loosely typed action parameters.
        educational_context: subject, gradeLevel, lessonTopic, duration, classSize, language.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: str = Field(default="", max_length=MAX_PROMPT_LENGTH, description="Educator prompt")
    session_id: str | None = Field(default=None, description="Session ID for conversation continuity")
    user_id: str | None = Field(default=None, max_length=USER_ID_MAX_LENGTH, description="Owning user ID")
    action_type: str | None = Field(
        default=None,
        max_length=ACTION_TYPE_MAX_LENGTH,
        description="TRANSLATE, SUMMARIZE, REWRITE, QUESTION_GENERATION",
    )
    action_params: dict[str, Any] | None = Field(default=None, description="Action parameters")
    educational_context: dict[str, Any] | None = Field(default=None, description="Educational context")

    @field_validator("session_id", "user_id", "action_type")
    @classmethod
    def strip_identifiers(cls, v: str | None) -> str | None:
        return normalize_identifier(v)


class CustomPromptRequest(BaseModel):
    """Request body for adding a custom suggested prompt."""
    category: str = Field(..., min_length=1, max_length=100)
    prompt: str = Field(..., min_length=1, max_length=500)

    @field_validator("category", "prompt")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v
