"""Custom exception hierarchy for the educator assistant.

All application-specific exceptions inherit from EducatorAssistantError,
enabling uniform error handling in the orchestrator and the global
error handlers.

Hierarchy:
    EducatorAssistantError (base)
    ├── RequestValidationError    - Malformed chat request
    ├── CompletionError           - Completion backend failures
    │   ├── CompletionRateLimitError - Backend rate limit
    │   └── CompletionTimeoutError   - Backend timeout
    ├── StoreError                - Session/message persistence failures
    └── SessionNotFoundError      - Missing session (404)
        └── AccessDeniedError     - Session owned by another user (also 404)
"""
from __future__ import annotations


class EducatorAssistantError(Exception):
    """Base exception for the educator assistant application."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ── Validation Errors ────────────────────────────────────────────────

class RequestValidationError(EducatorAssistantError):
    """Raised when a chat request fails structural or value validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            message="Parameter validation failed: " + ", ".join(self.errors),
            status_code=422,
        )


# ── Completion Errors ────────────────────────────────────────────────

class CompletionError(EducatorAssistantError):
    """Raised when the completion backend fails or returns nothing."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message, status_code)


class CompletionRateLimitError(CompletionError):
    """Raised when the completion backend returns 429."""

    def __init__(self, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(
            message="Completion rate limit exceeded. Please wait and try again.",
            status_code=429,
        )


class CompletionTimeoutError(CompletionError):
    """Raised when a completion request exceeds its timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            message=f"Completion request timed out after {timeout}s.",
            status_code=504,
        )


# ── Store Errors ─────────────────────────────────────────────────────

class StoreError(EducatorAssistantError):
    """Raised when the session/message store fails.

    The message is generic; the underlying cause is chained and logged.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            message="A storage error occurred while processing your request.",
            status_code=500,
        )


# ── Session Lookup Errors ────────────────────────────────────────────

class SessionNotFoundError(EducatorAssistantError):
    """Raised when a session does not exist for the requesting user."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(
            message=f"Session not found: {session_id}",
            status_code=404,
        )


class AccessDeniedError(SessionNotFoundError):
    """Raised when a session exists but belongs to another user.

    Shaped exactly like SessionNotFoundError so callers cannot probe
    for other users' sessions.
    """
