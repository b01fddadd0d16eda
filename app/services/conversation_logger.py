"""Conversation logger: structured JSON logging of chat interactions.

Records every interaction (prompt → action dispatch → completion call →
response or error) into per-session JSON files. Each file carries a
summary with counts of actions, models used, estimated tokens, and
errors, followed by the full interaction history.

Usage:
    conv_logger = ConversationLogger(log_dir="logs/conversations")
    interaction = conv_logger.start_interaction("session_1a2b3c4d", "Translate: Hello", "TRANSLATE")
    conv_logger.log_completion_call(interaction, "openai/gpt-3.5-turbo", 12, 40, 850.0)
    conv_logger.end_interaction(interaction, "Bonjour la classe")
"""
from __future__ import annotations

import json
import os
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class CompletionCallLog:
    """Log entry for a single completion call."""

    model: str
    request_tokens: int = 0
    response_tokens: int = 0
    duration_ms: float = 0.0
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "request_tokens": self.request_tokens,
            "response_tokens": self.response_tokens,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }


@dataclass
class InteractionLog:
    """Tracks a single request → response interaction."""

    session_id: str
    user_prompt: str
    action_type: str | None = None
    resolved_params: dict[str, Any] = field(default_factory=dict)
    completion_calls: list[CompletionCallLog] = field(default_factory=list)
    model_response: str = ""
    error: str | None = None
    start_time: float = 0.0
    end_time: float = 0.0
    timestamp: str = ""

    def __post_init__(self):
        if not self.start_time:
            self.start_time = time.time()
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def total_duration_ms(self) -> float:
        if self.end_time:
            return round((self.end_time - self.start_time) * 1000, 2)
        return 0.0

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "user_prompt": self.user_prompt,
            "action_type": self.action_type,
            "resolved_params": self.resolved_params,
            "completion_calls": [c.to_dict() for c in self.completion_calls],
            "model_response": self.model_response,
            "error": self.error,
            "total_duration_ms": self.total_duration_ms,
        }


class ConversationLogger:
    """Writes structured conversation logs to per-session JSON files.

    Args:
        log_dir: Directory path for conversation log files.
    """

    def __init__(self, log_dir: str = "logs/conversations") -> None:
        self._log_dir = Path(log_dir)
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

        logger.info("conversation_logger_initialized", log_dir=str(self._log_dir))

    # ── Public API ────────────────────────────────────────────────────

    def start_interaction(
        self,
        session_id: str,
        user_prompt: str,
        action_type: str | None = None,
        resolved_params: dict[str, Any] | None = None,
    ) -> InteractionLog:
        """Begin tracking a new interaction."""
        return InteractionLog(
            session_id=session_id,
            user_prompt=user_prompt,
            action_type=action_type,
            resolved_params=dict(resolved_params or {}),
        )

    def log_completion_call(
        self,
        interaction: InteractionLog,
        model: str,
        request_tokens: int = 0,
        response_tokens: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a completion call within an interaction."""
        interaction.completion_calls.append(CompletionCallLog(
            model=model,
            request_tokens=request_tokens,
            response_tokens=response_tokens,
            duration_ms=duration_ms,
        ))

    def end_interaction(self, interaction: InteractionLog, model_response: str) -> None:
        """Finalize a successful interaction and persist to disk."""
        interaction.model_response = model_response
        self._finish(interaction)

    def fail_interaction(self, interaction: InteractionLog, error: str) -> None:
        """Finalize a failed interaction and persist to disk."""
        interaction.error = error
        self._finish(interaction)

    def get_session_log(self, session_id: str) -> dict | None:
        """Read and return a session's log file, or None if not found."""
        log_file = self._get_log_file_path(session_id)
        if not log_file.exists():
            return None

        with open(log_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def list_sessions(self) -> list[dict]:
        """List all session log summaries, newest file first."""
        summaries = []
        for log_file in sorted(self._log_dir.glob("*.json"), reverse=True):
            try:
                with open(log_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                summaries.append({
                    "session_id": data.get("session_id", ""),
                    "created_at": data.get("created_at", ""),
                    "updated_at": data.get("updated_at", ""),
                    "summary": data.get("summary", {}),
                })
            except (json.JSONDecodeError, OSError):
                continue
        return summaries

    # ── Private Helpers ───────────────────────────────────────────────

    def _finish(self, interaction: InteractionLog) -> None:
        interaction.end_time = time.time()
        with self._lock:
            self._append_to_session_log(interaction)

        logger.info(
            "interaction_logged",
            session_id=interaction.session_id,
            action_type=interaction.action_type,
            completion_calls=len(interaction.completion_calls),
            failed=interaction.error is not None,
            duration_ms=interaction.total_duration_ms,
        )

    def _get_log_file_path(self, session_id: str) -> Path:
        """Build the log file path for a session."""
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in session_id)
        return self._log_dir / f"{safe_id}.json"

    def _append_to_session_log(self, interaction: InteractionLog) -> None:
        """Append one interaction to the session file and recompute its summary.

        The file on disk is the source of truth, so interactions written
        by an earlier process (or another worker) are kept. The new
        content is written to a temp file and swapped in, so readers
        never see a half-written log.
        """
        log_file = self._get_log_file_path(interaction.session_id)
        interactions = self._read_interactions(log_file)
        interactions.append(interaction.to_dict())

        log_data = {
            "session_id": interaction.session_id,
            "created_at": interactions[0].get("timestamp", ""),
            "updated_at": interactions[-1].get("timestamp", ""),
            "summary": self._compute_summary(interactions),
            "interactions": interactions,
        }

        tmp_file = log_file.with_suffix(".json.tmp")
        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(log_data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_file, log_file)
        except OSError as e:
            logger.error("log_save_failed", session_id=interaction.session_id, error=str(e))

    @staticmethod
    def _read_interactions(log_file: Path) -> list[dict]:
        if not log_file.exists():
            return []
        try:
            with open(log_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("log_file_unreadable", path=str(log_file), error=str(e))
            return []
        if not isinstance(data, dict):
            return []
        return list(data.get("interactions", []))

    @staticmethod
    def _compute_summary(interactions: list[dict]) -> dict:
        """Compute aggregate summary across all logged interactions."""
        actions_counter: Counter = Counter()
        models_counter: Counter = Counter()
        tokens = {"request": 0, "response": 0, "total": 0}
        total_calls = 0
        total_errors = 0

        for interaction in interactions:
            actions_counter[interaction.get("action_type") or "CHAT"] += 1
            if interaction.get("error") is not None:
                total_errors += 1
            for call in interaction.get("completion_calls", []):
                total_calls += 1
                models_counter[call.get("model", "")] += 1
                tokens["request"] += call.get("request_tokens", 0)
                tokens["response"] += call.get("response_tokens", 0)
        tokens["total"] = tokens["request"] + tokens["response"]

        return {
            "total_interactions": len(interactions),
            "total_completion_calls": total_calls,
            "actions_used": dict(actions_counter),
            "models_used": dict(models_counter),
            "estimated_tokens": tokens,
            "total_errors": total_errors,
        }
