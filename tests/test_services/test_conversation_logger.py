"""Tests for conversation_logger service.

Verifies InteractionLog, CompletionCallLog, ConversationLogger lifecycle,
file persistence, list/get operations, and summary computation.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.services.conversation_logger import (
    CompletionCallLog,
    ConversationLogger,
    InteractionLog,
)


@pytest.fixture
def log_dir(tmp_path):
    """Provide a temporary directory for log files."""
    return str(tmp_path / "test_logs")


@pytest.fixture
def conv_logger(log_dir):
    """Create a ConversationLogger with a temp directory."""
    return ConversationLogger(log_dir=log_dir)


# ── Data Classes ──────────────────────────────────────────────────────


class TestCompletionCallLog:
    """Tests for CompletionCallLog dataclass."""

    def test_to_dict_contains_all_fields(self):
        call = CompletionCallLog(
            model="openai/gpt-4",
            request_tokens=120,
            response_tokens=80,
            duration_ms=850.456,
        )
        d = call.to_dict()
        assert d["model"] == "openai/gpt-4"
        assert d["request_tokens"] == 120
        assert d["response_tokens"] == 80
        assert d["duration_ms"] == 850.46
        assert "timestamp" in d

    def test_auto_timestamp(self):
        assert CompletionCallLog(model="m").timestamp


class TestInteractionLog:
    """Tests for InteractionLog dataclass."""

    def test_duration_calculation(self):
        interaction = InteractionLog(session_id="s1", user_prompt="Test")
        interaction.start_time = 100.0
        interaction.end_time = 100.5
        assert interaction.total_duration_ms == 500.0

    def test_duration_zero_until_finished(self):
        assert InteractionLog(session_id="s1", user_prompt="Test").total_duration_ms == 0.0

    def test_to_dict_structure(self):
        interaction = InteractionLog(
            session_id="s1",
            user_prompt="Summarize the water cycle",
            action_type="SUMMARIZE",
            resolved_params={"summaryType": "PARAGRAPH"},
        )
        interaction.model_response = "Water evaporates..."
        interaction.end_time = interaction.start_time + 1.0

        d = interaction.to_dict()
        assert d["user_prompt"] == "Summarize the water cycle"
        assert d["action_type"] == "SUMMARIZE"
        assert d["resolved_params"] == {"summaryType": "PARAGRAPH"}
        assert d["model_response"] == "Water evaporates..."
        assert d["completion_calls"] == []
        assert d["error"] is None
        assert d["total_duration_ms"] == pytest.approx(1000.0, abs=1)


# ── ConversationLogger ───────────────────────────────────────────────


class TestConversationLoggerInit:
    """Tests for ConversationLogger initialization."""

    def test_creates_log_directory(self, log_dir):
        ConversationLogger(log_dir=log_dir)
        assert Path(log_dir).exists()

    def test_works_with_existing_directory(self, tmp_path):
        existing = tmp_path / "existing"
        existing.mkdir()
        assert ConversationLogger(log_dir=str(existing)) is not None


class TestStartInteraction:
    """Tests for ConversationLogger.start_interaction."""

    def test_returns_interaction_log(self, conv_logger):
        interaction = conv_logger.start_interaction("sess1", "Hello", "TRANSLATE", {"tone": "formal"})
        assert isinstance(interaction, InteractionLog)
        assert interaction.session_id == "sess1"
        assert interaction.action_type == "TRANSLATE"
        assert interaction.resolved_params == {"tone": "formal"}

    def test_resolved_params_copied(self, conv_logger):
        params = {"tone": "formal"}
        interaction = conv_logger.start_interaction("sess1", "Hello", "REWRITE", params)
        params["tone"] = "casual"
        assert interaction.resolved_params == {"tone": "formal"}

    def test_nothing_written_until_finished(self, conv_logger, log_dir):
        conv_logger.start_interaction("sess1", "Test")
        assert list(Path(log_dir).glob("*.json")) == []


class TestLogCompletionCall:
    """Tests for ConversationLogger.log_completion_call."""

    def test_appends_call(self, conv_logger):
        interaction = conv_logger.start_interaction("s1", "Test")
        conv_logger.log_completion_call(interaction, "openai/gpt-3.5-turbo", 10, 40, 320.0)

        assert len(interaction.completion_calls) == 1
        assert interaction.completion_calls[0].model == "openai/gpt-3.5-turbo"
        assert interaction.completion_calls[0].response_tokens == 40


class TestFinishInteraction:
    """Tests for end_interaction and fail_interaction."""

    def test_saves_to_disk(self, conv_logger, log_dir):
        interaction = conv_logger.start_interaction("session_1a2b3c4d", "Hi")
        conv_logger.end_interaction(interaction, "Hello! How can I help?")

        log_files = list(Path(log_dir).glob("*.json"))
        assert [f.name for f in log_files] == ["session_1a2b3c4d.json"]

    def test_json_file_has_correct_structure(self, conv_logger, log_dir):
        interaction = conv_logger.start_interaction("sess1", "Translate: Hello class", "TRANSLATE")
        conv_logger.log_completion_call(interaction, "openai/gpt-3.5-turbo", 12, 5, 400)
        conv_logger.end_interaction(interaction, "Bonjour la classe")

        with open(Path(log_dir) / "sess1.json") as f:
            data = json.load(f)

        assert data["session_id"] == "sess1"
        assert data["summary"]["total_interactions"] == 1
        assert data["summary"]["total_completion_calls"] == 1
        assert data["summary"]["actions_used"] == {"TRANSLATE": 1}
        assert data["summary"]["models_used"] == {"openai/gpt-3.5-turbo": 1}
        assert data["interactions"][0]["model_response"] == "Bonjour la classe"

    def test_fail_interaction_records_error(self, conv_logger):
        interaction = conv_logger.start_interaction("sess1", "Hello")
        conv_logger.fail_interaction(interaction, "Completion request timed out after 60s.")

        log = conv_logger.get_session_log("sess1")
        assert log["interactions"][0]["error"] == "Completion request timed out after 60s."
        assert log["summary"]["total_errors"] == 1

    def test_unsafe_session_id_sanitized(self, conv_logger, log_dir):
        interaction = conv_logger.start_interaction("../evil id", "Hi")
        conv_logger.end_interaction(interaction, "ok")

        assert [f.name for f in Path(log_dir).glob("*.json")] == ["___evil_id.json"]

    def test_fresh_logger_keeps_prior_interactions(self, conv_logger, log_dir):
        first = conv_logger.start_interaction("sess1", "Before restart", "TRANSLATE")
        conv_logger.end_interaction(first, "one")

        restarted = ConversationLogger(log_dir=log_dir)
        second = restarted.start_interaction("sess1", "After restart")
        restarted.end_interaction(second, "two")

        log = restarted.get_session_log("sess1")
        assert [i["user_prompt"] for i in log["interactions"]] == ["Before restart", "After restart"]
        assert log["summary"]["total_interactions"] == 2
        assert log["summary"]["actions_used"] == {"TRANSLATE": 1, "CHAT": 1}
        assert log["created_at"] == log["interactions"][0]["timestamp"]

    def test_unreadable_file_is_replaced(self, conv_logger, log_dir):
        (Path(log_dir) / "sess1.json").write_text("{not json")

        interaction = conv_logger.start_interaction("sess1", "Hi")
        conv_logger.end_interaction(interaction, "ok")

        assert conv_logger.get_session_log("sess1")["summary"]["total_interactions"] == 1
        assert not list(Path(log_dir).glob("*.tmp"))


class TestGetSessionLog:
    """Tests for ConversationLogger.get_session_log."""

    def test_returns_none_for_missing_session(self, conv_logger):
        assert conv_logger.get_session_log("nonexistent") is None

    def test_returns_data_for_existing_session(self, conv_logger):
        interaction = conv_logger.start_interaction("sess1", "Test")
        conv_logger.end_interaction(interaction, "Response")

        result = conv_logger.get_session_log("sess1")
        assert result["session_id"] == "sess1"


class TestListSessions:
    """Tests for ConversationLogger.list_sessions."""

    def test_returns_empty_list_initially(self, conv_logger):
        assert conv_logger.list_sessions() == []

    def test_multiple_sessions(self, conv_logger):
        for i in range(3):
            interaction = conv_logger.start_interaction(f"sess{i}", f"Test {i}")
            conv_logger.end_interaction(interaction, f"Response {i}")

        sessions = conv_logger.list_sessions()
        assert len(sessions) == 3
        assert all("summary" in s for s in sessions)

    def test_skips_corrupt_files(self, conv_logger, log_dir):
        (Path(log_dir) / "broken.json").write_text("{not json")
        interaction = conv_logger.start_interaction("sess1", "Test")
        conv_logger.end_interaction(interaction, "Response")

        assert [s["session_id"] for s in conv_logger.list_sessions()] == ["sess1"]


class TestSummaryComputation:
    """Tests for summary computation across multiple interactions."""

    def test_accumulates_across_interactions(self, conv_logger):
        i1 = conv_logger.start_interaction("sess1", "Query 1", "QUESTION_GENERATION")
        conv_logger.log_completion_call(i1, "openai/gpt-4", 100, 50, 900)
        conv_logger.end_interaction(i1, "Response 1")

        i2 = conv_logger.start_interaction("sess1", "Query 2")
        conv_logger.log_completion_call(i2, "openai/gpt-3.5-turbo", 30, 20, 300)
        conv_logger.end_interaction(i2, "Response 2")

        i3 = conv_logger.start_interaction("sess1", "Query 3", "QUESTION_GENERATION")
        conv_logger.fail_interaction(i3, "down")

        summary = conv_logger.get_session_log("sess1")["summary"]

        assert summary["total_interactions"] == 3
        assert summary["total_completion_calls"] == 2
        assert summary["actions_used"] == {"QUESTION_GENERATION": 2, "CHAT": 1}
        assert summary["models_used"] == {"openai/gpt-4": 1, "openai/gpt-3.5-turbo": 1}
        assert summary["estimated_tokens"] == {"request": 130, "response": 70, "total": 200}
        assert summary["total_errors"] == 1
