"""Typed per-action parameter models.

Resolved parameter maps are loosely typed on the wire; the parameter
resolver converts them into these models at the request boundary,
before anything is stored, so prompt rendering never re-inspects raw
dicts.

The resolver replaces an explicit null with the configured default
before conversion; a None that still reaches a model falls back to
the field default.
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ActionParams(BaseModel):
    """Base for the per-kind parameter models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_params(cls, params: Mapping[str, Any]):
        return cls.model_validate(dict(params))


class TranslateParams(ActionParams):
    target_language: str = "Spanish"
    original_language: str = "auto-detect"
    tone: str = "neutral"


class SummarizeParams(ActionParams):
    summary_type: str = "PARAGRAPH"
    max_length: int = Field(default=200, gt=0)
    focus_area: str = "main_ideas"


class RewriteParams(ActionParams):
    target_audience: str = "general"
    tone: str = "professional"
    purpose: str = "educational"


class QuestionGenerationParams(ActionParams):
    question_count: int = Field(default=5, gt=0)
    difficulty_level: str = "intermediate"
    question_types: list[str] = Field(default_factory=lambda: ["multiple_choice", "short_answer"])
    cognitive_level: list[str] = Field(default_factory=lambda: ["knowledge", "comprehension", "application"])

    @field_validator("question_types", "cognitive_level", mode="before")
    @classmethod
    def wrap_single_value(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v
