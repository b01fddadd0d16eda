"""Action processors: one prompt renderer per action kind.

Each processor:
1. takes the kind's typed parameter model (or resolves it from the
   request: configured defaults + user overrides),
2. builds the structured educational context,
3. fills the kind's template and calls the completion backend.

Dispatch is a plain kind → renderer map.

Usage:
    processors = ActionProcessors(llm, resolver, context_builder,
                                  standard_model="...", advanced_model="...")
    text = processors.process(ActionKind.TRANSLATE, request, session)
"""
from __future__ import annotations

from typing import Any, Callable

import structlog

from app.models.action_params import (
    ActionParams,
    QuestionGenerationParams,
    RewriteParams,
    SummarizeParams,
    TranslateParams,
)
from app.models.entities import ChatSessionEntity
from app.models.requests import ChatRequest
from app.prompts.templates import (
    QUESTION_GENERATION_TEMPLATE,
    REWRITE_TEMPLATE,
    SUMMARIZE_TEMPLATE,
    TRANSLATE_TEMPLATE,
    system_prompt_for,
)
from app.services.action_registry import ActionKind, uses_advanced_model
from app.services.context_builder import ContextBuilder, render_context_lines
from app.services.llm_service import LLMService
from app.services.parameter_resolver import ParameterResolver

logger = structlog.get_logger(__name__)

Renderer = Callable[[ChatRequest, Any, dict[str, Any]], str]


def humanize(value: str) -> str:
    """'middle_school' -> 'middle school'."""
    return value.replace("_", " ")


def _context_block(title: str, context: dict[str, Any], fields: tuple[tuple[str, str], ...]) -> str:
    lines = render_context_lines(context, fields)
    if not lines:
        return ""
    return f"{title}:\n" + "".join(f"{line}\n" for line in lines)


# ── Renderers ─────────────────────────────────────────────────────────

def render_translation(request: ChatRequest, p: TranslateParams, context: dict[str, Any]) -> str:
    return TRANSLATE_TEMPLATE.format(
        educational_context=_context_block(
            "Educational Context",
            context,
            (("subject", "Subject"), ("gradeLevel", "Grade Level"), ("lessonTopic", "Lesson Topic")),
        ),
        original_language=p.original_language,
        target_language=p.target_language,
        tone=p.tone,
        content=request.prompt,
    )


def render_summary(request: ChatRequest, p: SummarizeParams, context: dict[str, Any]) -> str:
    educational_context = ""
    if context:
        educational_context = (
            f"Educational Context: Subject - {context.get('subject', 'General')}, "
            f"Grade Level - {context.get('gradeLevel', 'General')}\n"
        )
    return SUMMARIZE_TEMPLATE.format(
        educational_context=educational_context,
        summary_type=humanize(p.summary_type.lower()),
        focus_area=humanize(p.focus_area),
        max_length=p.max_length,
        content=request.prompt,
    )


def render_rewrite(request: ChatRequest, p: RewriteParams, context: dict[str, Any]) -> str:
    educational_context = ""
    if context:
        educational_context = "Educational Context:\n" + "".join(
            f"- {key}: {value}\n" for key, value in context.items()
        )
    return REWRITE_TEMPLATE.format(
        educational_context=educational_context,
        target_audience=humanize(p.target_audience),
        tone=humanize(p.tone),
        purpose=humanize(p.purpose),
        content=request.prompt,
    )


def render_questions(request: ChatRequest, p: QuestionGenerationParams, context: dict[str, Any]) -> str:
    educational_context = "Educational Assessment Context:\n" + "".join(
        f"{line}\n"
        for line in render_context_lines(
            context,
            (
                ("subject", "Subject"),
                ("gradeLevel", "Grade Level"),
                ("lessonTopic", "Lesson Topic"),
                ("duration", "Assessment Duration"),
            ),
        )
    )
    return QUESTION_GENERATION_TEMPLATE.format(
        educational_context=educational_context,
        question_count=p.question_count,
        difficulty_level=p.difficulty_level,
        question_types=", ".join(p.question_types),
        cognitive_level=", ".join(p.cognitive_level),
        content=request.prompt,
    )


RENDERERS: dict[ActionKind, Renderer] = {
    ActionKind.TRANSLATE: render_translation,
    ActionKind.SUMMARIZE: render_summary,
    ActionKind.REWRITE: render_rewrite,
    ActionKind.QUESTION_GENERATION: render_questions,
}


class ActionProcessors:
    """Runs structured actions and generic chat against the completion backend.

    Args:
        llm_service: Completion backend.
        resolver: Parameter resolver holding the configured defaults.
        context_builder: Context builder for structured and chat context.
        standard_model: Model for generic chat, translation, summarization.
        advanced_model: Model for rewriting and question generation.
    """

    def __init__(
        self,
        llm_service: LLMService,
        resolver: ParameterResolver,
        context_builder: ContextBuilder,
        standard_model: str,
        advanced_model: str,
    ) -> None:
        self._llm = llm_service
        self._resolver = resolver
        self._context = context_builder
        self._standard_model = standard_model
        self._advanced_model = advanced_model

    def model_for(self, kind: ActionKind | None) -> str:
        """Advanced model for REWRITE/QUESTION_GENERATION, standard otherwise."""
        return self._advanced_model if uses_advanced_model(kind) else self._standard_model

    def render(
        self,
        kind: ActionKind,
        request: ChatRequest,
        session: ChatSessionEntity,
        params: ActionParams | None = None,
    ) -> str:
        """Build the finished action prompt without calling the backend."""
        if params is None:
            params = self._resolver.resolve(kind, request.action_params)
        context = self._context.build_structured_context(request, session)
        return RENDERERS[kind](request, params, context)

    def process(
        self,
        kind: ActionKind,
        request: ChatRequest,
        session: ChatSessionEntity,
        params: ActionParams | None = None,
    ) -> str:
        """Render the action prompt and return the raw completion text."""
        logger.info("processing_action", action_type=kind.value, session_id=session.session_id)
        prompt = self.render(kind, request, session, params)
        result = self._llm.complete(
            prompt,
            model=self.model_for(kind),
            system_prompt=system_prompt_for(kind),
        )
        logger.debug("action_completed", action_type=kind.value, response_chars=len(result))
        return result

    def chat(self, request: ChatRequest, session: ChatSessionEntity) -> str:
        """Generic chat: contextual prompt only, no action template."""
        prompt = self._context.build_prompt(request, session)
        return self._llm.complete(
            prompt,
            model=self.model_for(None),
            system_prompt=system_prompt_for(None),
        )
