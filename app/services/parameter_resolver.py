"""Parameter resolver: merges configured action defaults with user overrides.

Resolution is deliberately asymmetric:
- an unknown action-kind string fails open (user params pass through
  unchanged) so newer clients can send kinds this server doesn't know;
- an unknown parameter key for a known kind is rejected by
  `validate_params` in the registry.

Validation also runs the typed conversion, so a value the per-kind
parameter model cannot accept is reported before anything is stored.

Usage:
    resolver = ParameterResolver(settings.action_defaults())
    params = resolver.merge("TRANSLATE", {"targetLanguage": "French"})
    typed = resolver.typed_params(ActionKind.TRANSLATE, params)
"""
from __future__ import annotations

from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from app.models.action_params import (
    ActionParams,
    QuestionGenerationParams,
    RewriteParams,
    SummarizeParams,
    TranslateParams,
)
from app.services.action_registry import (
    ActionDefaults,
    ActionKind,
    parse_action_kind,
    validate_params,
)

logger = structlog.get_logger(__name__)

PARAM_MODELS: dict[ActionKind, type[ActionParams]] = {
    ActionKind.TRANSLATE: TranslateParams,
    ActionKind.SUMMARIZE: SummarizeParams,
    ActionKind.REWRITE: RewriteParams,
    ActionKind.QUESTION_GENERATION: QuestionGenerationParams,
}


class ParameterResolver:
    """Resolves and validates action parameters.

    Args:
        defaults: Immutable configured defaults per action kind.
    """

    def __init__(self, defaults: ActionDefaults | None = None) -> None:
        self._defaults = defaults or ActionDefaults.static()

    def merge(
        self,
        kind: ActionKind | str | None,
        user_params: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        """Overlay user parameters onto the configured defaults for `kind`.

        Every user key wins, explicit None included.

        Args:
            kind: ActionKind or its case-insensitive wire name.
            user_params: Raw parameters from the request.

        Returns:
            The resolved parameter map (a new dict).
        """
        if kind is None:
            return {}

        action_kind = kind if isinstance(kind, ActionKind) else parse_action_kind(kind)
        if action_kind is None:
            logger.error("parameter_resolution_failed", action_type=kind, reason="unknown_action_type")
            return dict(user_params) if user_params is not None else {}

        merged = self._defaults.for_kind(action_kind)
        if user_params:
            merged.update(user_params)
        return merged

    def typed_params(self, kind: ActionKind, resolved: Mapping[str, Any]) -> ActionParams:
        """Convert a resolved map into the kind's typed parameter model.

        An explicit None takes the configured default for that key.

        Raises:
            pydantic.ValidationError: If a value has the wrong shape.
        """
        defaults = self._defaults.for_kind(kind)
        filled = {
            key: defaults.get(key) if value is None else value
            for key, value in resolved.items()
        }
        return PARAM_MODELS[kind].from_params(filled)

    def resolve(self, kind: ActionKind, user_params: Mapping[str, Any] | None) -> ActionParams:
        """Merge then convert in one step."""
        return self.typed_params(kind, self.merge(kind, user_params))

    def validate(self, kind: ActionKind, user_params: Mapping[str, Any] | None) -> list[str]:
        """Structural key validation, per-kind value checks, then typed conversion."""
        errors = validate_params(kind, user_params)
        errors.extend(self.validate_values(kind, user_params))
        if errors:
            return errors

        try:
            self.resolve(kind, user_params)
        except ValidationError as e:
            errors.extend(describe_validation_errors(e))
        return errors

    @staticmethod
    def validate_values(kind: ActionKind, user_params: Mapping[str, Any] | None) -> list[str]:
        """Type/range checks for user-supplied values that have them."""
        if not user_params:
            return []

        errors: list[str] = []
        if kind is ActionKind.TRANSLATE:
            if "targetLanguage" in user_params and user_params["targetLanguage"] is None:
                errors.append("targetLanguage cannot be null")
        elif kind is ActionKind.QUESTION_GENERATION:
            if "questionCount" in user_params and not _is_positive_int(user_params["questionCount"]):
                errors.append("questionCount must be a positive integer")
        elif kind is ActionKind.SUMMARIZE:
            if "maxLength" in user_params and not _is_positive_int(user_params["maxLength"]):
                errors.append("maxLength must be a positive integer")
        return errors


def describe_validation_errors(error: ValidationError) -> list[str]:
    """One readable line per pydantic error, keyed by the wire name.

    Examples:
        "questionTypes has an invalid value: Input should be a valid list"
    """
    messages = []
    for detail in error.errors():
        field_name = str(detail["loc"][0]) if detail["loc"] else "parameters"
        messages.append(f"{field_name} has an invalid value: {detail['msg']}")
    return messages


def _is_positive_int(value: Any) -> bool:
    # bool is an int subclass; True is not a question count
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
