"""Chat orchestrator: the central coordinator of a chat request.

Runs the full request pipeline:
    Validate → Resolve session → Persist user message → Generate
    (action processor or generic chat) → Persist assistant message →
    Suggest follow-ups + record activity → Response

The orchestrator holds no state of its own; everything lives in the
store behind the injected collaborators. Every failure is converted into
an ERROR ChatResponse, and nothing is retried.

Usage:
    orchestrator = ChatOrchestrator(session_manager, message_log, processors,
                                    resolver, context_builder, suggested_prompts)
    response = orchestrator.process_chat(request)
"""
from __future__ import annotations

import enum
import time
from typing import Any

import structlog

from app.models.action_params import ActionParams
from app.models.entities import ChatSessionEntity
from app.models.requests import ChatRequest
from app.models.responses import ActionMetadata, ChatResponse, ResponseStatus
from app.services.action_processors import ActionProcessors
from app.services.action_registry import (
    ActionKind,
    parse_action_kind,
    recommended_context,
    requires_context,
)
from app.services.context_builder import ContextBuilder
from app.services.message_log import MessageLog
from app.services.parameter_resolver import ParameterResolver
from app.services.session_manager import SessionManager
from app.services.suggested_prompts import SuggestedPromptsProvider
from app.utils.exceptions import RequestValidationError, StoreError

logger = structlog.get_logger(__name__)

ERROR_MESSAGE_PREFIX = "An error occurred while processing your request: "


class PipelineState(str, enum.Enum):
    """Pipeline stages a request passes through."""

    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    SESSION_RESOLVED = "SESSION_RESOLVED"
    USER_MESSAGE_PERSISTED = "USER_MESSAGE_PERSISTED"
    RESPONSE_GENERATED = "RESPONSE_GENERATED"
    ASSISTANT_MESSAGE_PERSISTED = "ASSISTANT_MESSAGE_PERSISTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ChatOrchestrator:
    """Main orchestration service for educator chat requests.

    Args:
        session_manager: Session resolution and activity tracking.
        message_log: Append-only message storage.
        processors: Action processors and generic chat.
        resolver: Parameter resolver (validation + defaults).
        context_builder: Used for response token estimates.
        suggested_prompts: Follow-up prompt source.
        conversation_logger: Optional ConversationLogger for structured logging.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        message_log: MessageLog,
        processors: ActionProcessors,
        resolver: ParameterResolver,
        context_builder: ContextBuilder,
        suggested_prompts: SuggestedPromptsProvider,
        conversation_logger=None,
    ) -> None:
        self._sessions = session_manager
        self._messages = message_log
        self._processors = processors
        self._resolver = resolver
        self._context = context_builder
        self._suggestions = suggested_prompts
        self._conv_logger = conversation_logger

    # ── Public API ────────────────────────────────────────────────────

    def process_chat(self, request: ChatRequest) -> ChatResponse:
        """Process one chat request and return the response.

        Never raises: any failure becomes a ChatResponse with ERROR
        status. Validation failures happen before anything is persisted.
        """
        state = PipelineState.RECEIVED
        session: ChatSessionEntity | None = None
        interaction = None

        structlog.contextvars.bind_contextvars(user_id=request.user_id)
        logger.info(
            "processing_chat_request",
            action_type=request.action_type,
            has_session_id=request.session_id is not None,
            prompt_length=len(request.prompt),
        )

        try:
            self.validate(request)
            state = PipelineState.VALIDATED

            session = self._sessions.resolve(request)
            structlog.contextvars.bind_contextvars(session_id=session.session_id)
            state = PipelineState.SESSION_RESOLVED

            kind = parse_action_kind(request.action_type)
            resolved_params = self._resolver.merge(kind, request.action_params) if kind else {}
            params = self._resolver.typed_params(kind, resolved_params) if kind else None
            if self._conv_logger:
                interaction = self._conv_logger.start_interaction(
                    session.session_id, request.prompt, request.action_type, resolved_params,
                )

            self._messages.record_user_message(request, session)
            state = PipelineState.USER_MESSAGE_PERSISTED

            ai_model = self._processors.model_for(kind)
            start_time = time.time()
            content = self._generate(kind, request, session, params)
            duration_ms = (time.time() - start_time) * 1000
            tokens_used = self._context.estimate_tokens(content)
            state = PipelineState.RESPONSE_GENERATED

            if self._conv_logger and interaction:
                self._conv_logger.log_completion_call(
                    interaction,
                    model=ai_model,
                    request_tokens=self._context.estimate_tokens(request.prompt),
                    response_tokens=tokens_used,
                    duration_ms=duration_ms,
                )

            action_metadata = self.build_action_metadata(request, kind, resolved_params)
            assistant_message = self._messages.record_assistant_message(
                content,
                request,
                session,
                ai_model=ai_model,
                tokens_used=tokens_used,
                action_metadata=(
                    action_metadata.model_dump(by_alias=True, exclude_none=True)
                    if action_metadata else None
                ),
            )
            state = PipelineState.ASSISTANT_MESSAGE_PERSISTED

            suggested = self._suggestions.suggest(session.current_subject, request.action_type)
            self._sessions.record_activity(session, request)
            state = PipelineState.COMPLETED

            if self._conv_logger and interaction:
                self._conv_logger.end_interaction(interaction, content)

            logger.info(
                "chat_request_completed",
                message_id=assistant_message.message_id,
                model=ai_model,
                tokens_used=tokens_used,
            )

            return ChatResponse(
                message_id=assistant_message.message_id,
                content=assistant_message.content,
                session_id=session.session_id,
                status=ResponseStatus.SUCCESS,
                ai_model=ai_model,
                suggested_prompts=suggested,
                action_metadata=action_metadata,
                tokens_used=tokens_used,
            )

        except RequestValidationError as e:
            logger.warning("chat_request_invalid", errors=e.errors)
            return ChatResponse.error(e.message)

        except StoreError as e:
            # Cause is logged by the store; callers only see the generic message
            return self._fail(state, session, interaction, e.message, error_type=type(e).__name__)

        except Exception as e:
            return self._fail(
                state,
                session,
                interaction,
                ERROR_MESSAGE_PREFIX + _describe(e),
                error_type=type(e).__name__,
                exc_info=True,
            )

        finally:
            structlog.contextvars.unbind_contextvars("user_id", "session_id")

    def validate(self, request: ChatRequest) -> None:
        """Collect every request violation and raise them together.

        Raises:
            RequestValidationError: With all violations, in check order.
        """
        errors: list[str] = []

        kind = parse_action_kind(request.action_type)
        if kind is not None:
            errors.extend(self._resolver.validate(kind, request.action_params))
            if requires_context(kind) and not request.educational_context:
                logger.warning(
                    "educational_context_recommended",
                    action_type=kind.value,
                    recommended=sorted(recommended_context(kind)),
                )

        if not request.user_id:
            errors.append("User ID is required")
        if not request.prompt or not request.prompt.strip():
            errors.append("Prompt content is required")

        if errors:
            raise RequestValidationError(errors)

    @staticmethod
    def build_action_metadata(
        request: ChatRequest,
        kind: ActionKind | None,
        resolved_params: dict[str, Any],
    ) -> ActionMetadata | None:
        """Summarize the action behind a response; None for generic chat."""
        if not request.action_type:
            return None
        if kind is None:
            return ActionMetadata(action_type=request.action_type)

        metadata = ActionMetadata(action_type=kind.value)
        if kind is ActionKind.TRANSLATE:
            metadata.original_language = _optional_str(resolved_params.get("originalLanguage"))
            metadata.target_language = _optional_str(resolved_params.get("targetLanguage"))
            metadata.tone = _optional_str(resolved_params.get("tone"))
        elif kind is ActionKind.SUMMARIZE:
            metadata.summary_type = _optional_str(resolved_params.get("summaryType"))
        elif kind is ActionKind.REWRITE:
            metadata.tone = _optional_str(resolved_params.get("tone"))
        elif kind is ActionKind.QUESTION_GENERATION:
            count = resolved_params.get("questionCount")
            metadata.question_count = count if isinstance(count, int) and not isinstance(count, bool) else None
        return metadata

    # ── Private Helpers ───────────────────────────────────────────────

    def _generate(
        self,
        kind: ActionKind | None,
        request: ChatRequest,
        session: ChatSessionEntity,
        params: ActionParams | None,
    ) -> str:
        if kind is not None:
            return self._processors.process(kind, request, session, params)

        if request.action_type:
            logger.warning(
                "unknown_action_type",
                action_type=request.action_type,
                fallback="generic_chat",
            )
        return self._processors.chat(request, session)

    def _fail(
        self,
        state: PipelineState,
        session: ChatSessionEntity | None,
        interaction,
        message: str,
        error_type: str,
        exc_info: bool = False,
    ) -> ChatResponse:
        logger.error(
            "chat_request_failed",
            failed_at=state.value,
            error=message,
            error_type=error_type,
            exc_info=exc_info,
        )
        if self._conv_logger and interaction:
            self._conv_logger.fail_interaction(interaction, message)
        return ChatResponse.error(message, session_id=session.session_id if session else None)


def _describe(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or type(error).__name__


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
