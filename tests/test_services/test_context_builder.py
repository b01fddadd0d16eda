"""Unit tests for the context builder."""
import pytest

from app.models.requests import ChatRequest
from app.prompts.templates import EDUCATOR_PREAMBLE
from app.services.context_builder import (
    ContextBuilder,
    render_context_lines,
    truncate_for_history,
)


@pytest.fixture
def session(session_manager, make_request):
    return session_manager.create_session(make_request())


def _add_turns(message_log, session, prompts):
    for prompt in prompts:
        request = ChatRequest(prompt=prompt, user_id=session.user_id)
        message_log.record_user_message(request, session)
        message_log.record_assistant_message(f"Answer to {prompt}", request, session, "m", 3)


class TestTruncateForHistory:
    """Tests for truncate_for_history."""

    def test_short_message_unchanged(self):
        assert truncate_for_history("short") == "short"

    def test_exactly_150_unchanged(self):
        text = "a" * 150
        assert truncate_for_history(text) == text

    def test_long_message_truncated_to_147_plus_ellipsis(self):
        result = truncate_for_history("b" * 151)
        assert result == "b" * 147 + "..."
        assert len(result) == 150


class TestBuildPrompt:
    """Tests for ContextBuilder.build_prompt."""

    def test_no_history_block_for_new_session(self, context_builder, session, make_request):
        prompt = context_builder.build_prompt(make_request(prompt="Hello"), session)

        assert prompt.startswith(EDUCATOR_PREAMBLE)
        assert "Recent Conversation:" not in prompt
        assert prompt.endswith("Current Request: Hello")

    def test_educational_context_block_only_when_present(self, context_builder, session, make_request):
        without = context_builder.build_prompt(make_request(), session)
        assert "Educational Context:" not in without

        with_ctx = context_builder.build_prompt(
            make_request(educational_context={"subject": "Math", "gradeLevel": "5"}),
            session,
        )
        assert "Educational Context:\n- Subject: Math\n- Grade Level: 5\n" in with_ctx

    def test_educational_context_field_order_and_filter(self, context_builder, session, make_request):
        request = make_request(educational_context={
            "classSize": 24,
            "language": "French",
            "subject": "Science",
            "duration": "45 minutes",
            "lessonTopic": "Plants",
        })
        prompt = context_builder.build_prompt(request, session)

        assert (
            "- Subject: Science\n- Lesson Topic: Plants\n- Duration: 45 minutes\n- Class Size: 24\n"
            in prompt
        )
        assert "French" not in prompt.split("Session Context:")[0]

    def test_session_context_block(self, context_builder, session, make_request):
        session.current_subject = "History"
        session.education_level = "8"
        prompt = context_builder.build_prompt(make_request(), session)

        assert (
            "Session Context:\n- Current Subject: History\n- Education Level: 8\n"
            "- Preferred Language: English\n" in prompt
        )

    def test_history_is_chronological_with_roles(self, context_builder, message_log, session, make_request):
        _add_turns(message_log, session, ["first", "second"])
        prompt = context_builder.build_prompt(make_request(prompt="third"), session)

        history = prompt.split("Recent Conversation:\n")[1].split("\n\n")[0]
        assert history.splitlines() == [
            "- Educator: first",
            "- Assistant: Answer to first",
            "- Educator: second",
            "- Assistant: Answer to second",
        ]

    def test_history_limited_to_window(self, context_builder, message_log, session, make_request):
        _add_turns(message_log, session, [f"turn {i}" for i in range(5)])
        prompt = context_builder.build_prompt(make_request(), session)

        history = prompt.split("Recent Conversation:\n")[1].split("\n\n")[0]
        lines = history.splitlines()
        assert len(lines) == 6
        assert lines[0] == "- Educator: turn 2"
        assert lines[-1] == "- Assistant: Answer to turn 4"

    def test_long_history_message_truncated(self, context_builder, message_log, session, make_request):
        _add_turns(message_log, session, ["x" * 200])
        prompt = context_builder.build_prompt(make_request(), session)

        assert f"- Educator: {'x' * 147}...\n" in prompt

    def test_section_order(self, context_builder, message_log, session, make_request):
        _add_turns(message_log, session, ["earlier"])
        prompt = context_builder.build_prompt(
            make_request(prompt="now", educational_context={"subject": "Art"}),
            session,
        )
        positions = [
            prompt.index("Educational Context:"),
            prompt.index("Session Context:"),
            prompt.index("Recent Conversation:"),
            prompt.index("Current Request: now"),
        ]
        assert positions == sorted(positions)


class TestStructuredContext:
    """Tests for ContextBuilder.build_structured_context."""

    def test_session_defaults(self, context_builder, session, make_request):
        session.current_subject = "Math"
        session.education_level = "4"
        context = context_builder.build_structured_context(make_request(), session)

        assert context == {"subject": "Math", "gradeLevel": "4", "language": "English"}

    def test_request_wins(self, context_builder, session, make_request):
        session.current_subject = "Math"
        context = context_builder.build_structured_context(
            make_request(educational_context={"subject": "Biology", "lessonTopic": "Cells"}),
            session,
        )

        assert context["subject"] == "Biology"
        assert context["lessonTopic"] == "Cells"
        assert context["language"] == "English"


class TestHelpers:
    """Tests for estimate_tokens and render_context_lines."""

    def test_estimate_tokens(self):
        assert ContextBuilder.estimate_tokens("") == 0
        assert ContextBuilder.estimate_tokens("abcdefgh") == 2
        assert ContextBuilder.estimate_tokens("abc") == 0

    def test_render_context_lines_skips_missing_and_none(self):
        lines = render_context_lines({"subject": "Math", "gradeLevel": None})
        assert lines == ["- Subject: Math"]
