"""Context builder: turns request, session, and history into prompt context.

Produces two things:
- a full contextual prompt for generic chat (persona, educational
  context, session context, recent conversation, current request);
- a structured context map consumed by the action processors.

Usage:
    builder = ContextBuilder(message_log, history_window=6)
    prompt = builder.build_prompt(request, session)
"""
from __future__ import annotations

from typing import Any

import structlog

from app.models.entities import ChatSessionEntity, MessageSender
from app.models.requests import ChatRequest
from app.prompts.templates import EDUCATOR_PREAMBLE
from app.services.message_log import MessageLog

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_WINDOW = 6
HISTORY_MESSAGE_MAX_CHARS = 150
CHARS_PER_TOKEN = 4

# Rendered in this order; other keys are ignored in the prompt
EDUCATIONAL_CONTEXT_FIELDS: tuple[tuple[str, str], ...] = (
    ("subject", "Subject"),
    ("gradeLevel", "Grade Level"),
    ("lessonTopic", "Lesson Topic"),
    ("duration", "Duration"),
    ("classSize", "Class Size"),
)


def truncate_for_history(content: str, max_chars: int = HISTORY_MESSAGE_MAX_CHARS) -> str:
    """Shorten a message for the history block: 147 chars + '...' when over 150."""
    if len(content) > max_chars:
        return content[: max_chars - 3] + "..."
    return content


def render_context_lines(
    context: dict[str, Any],
    fields: tuple[tuple[str, str], ...] = EDUCATIONAL_CONTEXT_FIELDS,
) -> list[str]:
    """Render `- Label: value` lines for the recognized keys present in `context`."""
    return [
        f"- {label}: {context[key]}"
        for key, label in fields
        if key in context and context[key] is not None
    ]


class ContextBuilder:
    """Builds prompt context from request, session, and message history.

    Args:
        message_log: Source of recent session messages.
        history_window: Max number of recent messages to include.
    """

    def __init__(self, message_log: MessageLog, history_window: int = DEFAULT_HISTORY_WINDOW) -> None:
        self._messages = message_log
        self._history_window = history_window

    # ── Public API ────────────────────────────────────────────────────

    def build_prompt(self, request: ChatRequest, session: ChatSessionEntity) -> str:
        """Assemble the full contextual prompt for generic chat."""
        sections = [
            EDUCATOR_PREAMBLE,
            self._educational_context_block(request),
            self._session_context_block(session),
            self._history_block(session),
            f"Current Request: {request.prompt}",
        ]
        prompt = "".join(section for section in sections if section)

        logger.debug(
            "context_built",
            session_id=session.session_id,
            context_chars=len(prompt),
            estimated_tokens=self.estimate_tokens(prompt),
        )
        return prompt

    def build_structured_context(self, request: ChatRequest, session: ChatSessionEntity) -> dict[str, Any]:
        """Request educational context over session defaults; request wins."""
        context: dict[str, Any] = {}
        if session.current_subject is not None:
            context["subject"] = session.current_subject
        if session.education_level is not None:
            context["gradeLevel"] = session.education_level
        if session.preferred_language is not None:
            context["language"] = session.preferred_language

        if request.educational_context:
            context.update(request.educational_context)
        return context

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough token count for observability only."""
        return len(text) // CHARS_PER_TOKEN

    # ── Blocks ────────────────────────────────────────────────────────

    @staticmethod
    def _educational_context_block(request: ChatRequest) -> str:
        if not request.educational_context:
            return ""
        lines = render_context_lines(request.educational_context)
        return "Educational Context:\n" + "".join(f"{line}\n" for line in lines) + "\n"

    @staticmethod
    def _session_context_block(session: ChatSessionEntity) -> str:
        lines = render_context_lines(
            {
                "current_subject": session.current_subject,
                "education_level": session.education_level,
                "preferred_language": session.preferred_language,
            },
            fields=(
                ("current_subject", "Current Subject"),
                ("education_level", "Education Level"),
                ("preferred_language", "Preferred Language"),
            ),
        )
        return "Session Context:\n" + "".join(f"{line}\n" for line in lines) + "\n"

    def _history_block(self, session: ChatSessionEntity) -> str:
        recent = self._messages.recent_messages(session.session_id, self._history_window)
        if not recent:
            return ""

        lines = []
        for message in recent:
            sender = "Educator" if message.sender == MessageSender.USER else "Assistant"
            lines.append(f"- {sender}: {truncate_for_history(message.content)}\n")
        return "Recent Conversation:\n" + "".join(lines) + "\n"
