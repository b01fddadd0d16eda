"""Suggested prompts: follow-up ideas keyed by subject and action type.

A pluggable content source: general educator prompts, plus
subject-specific and action-specific pools, shuffled and capped.
Custom prompts can be added at runtime per category.
"""
from __future__ import annotations

import random
import threading

import structlog

logger = structlog.get_logger(__name__)

GENERAL_CATEGORY = "general"

EDUCATOR_PROMPTS: dict[str, list[str]] = {
    GENERAL_CATEGORY: [
        "Create a lesson plan for today's topic",
        "Generate discussion questions for class engagement",
        "Design an assessment rubric",
        "Suggest classroom management strategies",
        "Create homework assignments that reinforce learning",
        "Develop differentiated instruction approaches",
        "Generate parent communication templates",
        "Design interactive learning activities",
        "Create a quiz for this lesson",
        "Suggest ways to make this topic more engaging",
        "Help me plan a group project",
        "Generate ice-breaker activities for class",
    ],
    "math": [
        "Create word problems for algebra practice",
        "Generate step-by-step problem solutions",
        "Design math games for concept reinforcement",
        "Create visual aids for geometric concepts",
        "Develop real-world math applications",
        "Make practice worksheets for this concept",
        "Create math center activities",
    ],
    "english": [
        "Create creative writing prompts",
        "Generate reading comprehension questions",
        "Design vocabulary building exercises",
        "Create grammar practice activities",
        "Develop literature analysis guides",
        "Plan a book club discussion",
        "Create writing rubrics",
    ],
    "science": [
        "Design hands-on science experiments",
        "Create lab safety protocols",
        "Generate hypothesis testing activities",
        "Develop science fair project ideas",
        "Create concept mapping exercises",
        "Plan field trip connections",
        "Design STEM challenges",
    ],
    "social studies": [
        "Create timeline activities",
        "Design role-playing scenarios",
        "Generate current events discussions",
        "Create map-based activities",
        "Develop cultural comparison projects",
    ],
}

ACTION_PROMPTS: dict[str, list[str]] = {
    "translate": [
        "Translate this lesson content to Spanish for ELL students",
        "Convert technical terms to simple language",
        "Translate parent communication letters",
        "Create multilingual classroom resources",
        "Make vocabulary cards in multiple languages",
    ],
    "summarize": [
        "Summarize this chapter in bullet points",
        "Create a one-paragraph summary for students",
        "Extract key concepts from this text",
        "Generate executive summary for administrators",
        "Make student-friendly chapter highlights",
    ],
    "rewrite": [
        "Rewrite this for elementary students",
        "Make this more engaging and interactive",
        "Convert to formal academic language",
        "Simplify this explanation for struggling learners",
        "Adapt this content for different grade levels",
    ],
    "question_generation": [
        "Create quiz questions from this content",
        "Generate discussion starters",
        "Make multiple choice questions",
        "Create open-ended reflection questions",
        "Design critical thinking questions",
    ],
}


class SuggestedPromptsProvider:
    """Serves suggested follow-up prompts.

    Args:
        limit: Max prompts returned by `suggest`.
        rng: Random source used for shuffling (seed it in tests).
    """

    def __init__(self, limit: int = 5, rng: random.Random | None = None) -> None:
        self._limit = limit
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._educator_prompts = {k: list(v) for k, v in EDUCATOR_PROMPTS.items()}
        self._action_prompts = {k: list(v) for k, v in ACTION_PROMPTS.items()}

    def suggest(self, subject: str | None, action_type: str | None, limit: int | None = None) -> list[str]:
        """Return up to `limit` prompts from the general, subject, and action pools."""
        with self._lock:
            prompts = list(self._educator_prompts.get(GENERAL_CATEGORY, []))
            if subject:
                prompts.extend(self._educator_prompts.get(subject.strip().lower(), []))
            if action_type:
                prompts.extend(self._action_prompts.get(action_type.strip().lower(), []))
            self._rng.shuffle(prompts)

        return prompts[: limit or self._limit]

    def add_custom(self, category: str, prompt: str) -> None:
        key = category.strip().lower()
        with self._lock:
            self._educator_prompts.setdefault(key, []).append(prompt)
        logger.info("custom_prompt_added", category=key)

    def prompts_by_category(self, category: str) -> list[str]:
        with self._lock:
            return list(self._educator_prompts.get(category.strip().lower(), []))
