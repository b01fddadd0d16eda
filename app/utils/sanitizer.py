"""Input sanitization for educator prompts.

Provides:
- sanitize_user_input(): Clean a prompt before it is stored or sent to the model.
- normalize_identifier(): Trim optional identifiers (session/user ids).

Prompts are kept verbatim apart from surrounding whitespace: they are
stored, titled and sent to the completion backend exactly as typed.
Escaping belongs to whatever renders them as HTML.
"""
from __future__ import annotations

MAX_PROMPT_LENGTH = 4000


def sanitize_user_input(text: str, max_length: int = MAX_PROMPT_LENGTH) -> str:
    """Sanitize a prompt before processing.

    Applies the following transformations:
    1. Strip leading/trailing whitespace
    2. Truncate to max length

    Args:
        text: Raw prompt string.
        max_length: Hard character limit.

    Returns:
        Sanitized prompt.

    Raises:
        ValueError: If text is not a string or is empty after stripping.
    """
    if not isinstance(text, str):
        raise ValueError("Prompt must be a string")

    text = text.strip()

    if not text:
        raise ValueError("Prompt content cannot be empty")

    if len(text) > max_length:
        text = text[:max_length]

    return text


def normalize_identifier(value: str | None) -> str | None:
    """Return a stripped identifier, or None when blank.

    Examples:
        >>> normalize_identifier("  session_1  ")
        'session_1'
        >>> normalize_identifier("   ") is None
        True
    """
    if value is None:
        return None
    value = value.strip()
    return value or None
