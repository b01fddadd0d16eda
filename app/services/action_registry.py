"""Action registry: the closed set of structured educator actions.

Each ActionKind maps to an ActionSpec describing its allowed parameter
keys, static fallback defaults, and context recommendations. All
functions here are pure: no logging, no I/O, no shared mutable state.

The configured (per-deployment) defaults live in ActionDefaults, an
immutable snapshot built once at startup from Settings.

Usage:
    kind = parse_action_kind("translate")          # ActionKind.TRANSLATE
    errors = validate_params(kind, {"colour": 1})  # ["Unsupported parameter 'colour' ..."]
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping


class ActionKind(str, enum.Enum):
    """Supported structured actions. Values equal the wire names."""

    TRANSLATE = "TRANSLATE"
    SUMMARIZE = "SUMMARIZE"
    REWRITE = "REWRITE"
    QUESTION_GENERATION = "QUESTION_GENERATION"


@dataclass(frozen=True)
class ActionSpec:
    """Static description of one action kind."""

    description: str
    allowed_params: frozenset[str]
    default_params: Mapping[str, Any]
    requires_context: bool = False
    recommended_context: frozenset[str] = frozenset()
    uses_advanced_model: bool = False


ACTION_REGISTRY: Mapping[ActionKind, ActionSpec] = MappingProxyType({
    ActionKind.TRANSLATE: ActionSpec(
        description="Translation Service",
        allowed_params=frozenset({"targetLanguage", "originalLanguage", "tone"}),
        default_params=MappingProxyType({
            "targetLanguage": "Spanish",
            "originalLanguage": "auto-detect",
            "tone": "neutral",
        }),
    ),
    ActionKind.SUMMARIZE: ActionSpec(
        description="Content Summarization",
        allowed_params=frozenset({"summaryType", "maxLength", "focusArea"}),
        default_params=MappingProxyType({
            "summaryType": "PARAGRAPH",
            "maxLength": 200,
            "focusArea": "main_ideas",
        }),
        recommended_context=frozenset({"subject", "gradeLevel"}),
    ),
    ActionKind.REWRITE: ActionSpec(
        description="Content Rewriting",
        allowed_params=frozenset({"targetAudience", "tone", "purpose"}),
        default_params=MappingProxyType({
            "targetAudience": "general",
            "tone": "professional",
            "purpose": "educational",
        }),
        requires_context=True,
        recommended_context=frozenset({"gradeLevel", "subject"}),
        uses_advanced_model=True,
    ),
    ActionKind.QUESTION_GENERATION: ActionSpec(
        description="Educational Question Generation",
        allowed_params=frozenset({"questionCount", "difficultyLevel", "questionTypes", "cognitiveLevel"}),
        default_params=MappingProxyType({
            "questionCount": 5,
            "difficultyLevel": "intermediate",
            "questionTypes": ("multiple_choice", "short_answer"),
            "cognitiveLevel": ("knowledge", "comprehension", "application"),
        }),
        requires_context=True,
        recommended_context=frozenset({"subject", "gradeLevel", "lessonTopic", "duration"}),
        uses_advanced_model=True,
    ),
})


# ── Lookups ───────────────────────────────────────────────────────────

def parse_action_kind(value: str | None) -> ActionKind | None:
    """Match an action-type string case-insensitively.

    Returns None for empty or unrecognized strings; callers decide
    whether that means generic chat.
    """
    if not value or not value.strip():
        return None
    try:
        return ActionKind(value.strip().upper())
    except ValueError:
        return None


def get_spec(kind: ActionKind) -> ActionSpec:
    return ACTION_REGISTRY[kind]


def validate_params(kind: ActionKind, params: Mapping[str, Any] | None) -> list[str]:
    """Return one error per parameter key the kind does not accept.

    Absent or empty params are always valid.
    """
    if not params:
        return []
    allowed = ACTION_REGISTRY[kind].allowed_params
    return [
        f"Unsupported parameter '{name}' for action type {kind.value}"
        for name in params
        if name not in allowed
    ]


def default_params(kind: ActionKind) -> dict[str, Any]:
    """Static fallback defaults for a kind, as a fresh mutable copy."""
    return _thaw(ACTION_REGISTRY[kind].default_params)


def requires_context(kind: ActionKind) -> bool:
    return ACTION_REGISTRY[kind].requires_context


def recommended_context(kind: ActionKind) -> frozenset[str]:
    return ACTION_REGISTRY[kind].recommended_context


def uses_advanced_model(kind: ActionKind | None) -> bool:
    return kind is not None and ACTION_REGISTRY[kind].uses_advanced_model


# ── Configured defaults ───────────────────────────────────────────────

class ActionDefaults:
    """Read-only per-kind default parameter maps.

    Built once at startup; `for_kind` always hands out a fresh copy so
    callers can never mutate the shared defaults. Kinds missing from the
    configured mapping fall back to the registry's static defaults.
    """

    def __init__(self, defaults: Mapping[ActionKind, Mapping[str, Any]]) -> None:
        self._defaults: Mapping[ActionKind, Mapping[str, Any]] = MappingProxyType({
            kind: MappingProxyType({key: _freeze(value) for key, value in params.items()})
            for kind, params in defaults.items()
        })

    @classmethod
    def from_mapping(cls, defaults: Mapping[ActionKind, Mapping[str, Any]]) -> "ActionDefaults":
        return cls(defaults)

    @classmethod
    def static(cls) -> "ActionDefaults":
        """Defaults straight from the registry (no configuration)."""
        return cls({kind: spec.default_params for kind, spec in ACTION_REGISTRY.items()})

    def for_kind(self, kind: ActionKind) -> dict[str, Any]:
        configured = self._defaults.get(kind)
        if configured is None:
            return default_params(kind)
        return _thaw(configured)


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    return value


def _thaw(params: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in params.items()
    }
