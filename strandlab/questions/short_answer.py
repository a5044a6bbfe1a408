"""
Short answer evaluator.

Free-text answers are scored by an optional external grader, falling back to
a local heuristic: 60% required-keyword coverage, 40% required-concept
coverage, both case-insensitive substring matches, scaled to the question
level. Word limits are enforced around either scorer.
"""

from __future__ import annotations

import asyncio
from fractions import Fraction
from typing import TYPE_CHECKING, Any

from loguru import logger

from strandlab.errors import GradingProviderError, QuestionValidationError

from . import QuestionType, register
from .base import QuestionResponse, diagnostic_response
from .feedback import build_feedback
from .models import ShortAnswerQuestion, check_question, coerce_question
from .scoring import clamp, round_half_up, word_count

if TYPE_CHECKING:
    from strandlab.integrations.grading_client import ShortAnswerGrader

KEYWORD_WEIGHT = Fraction(6, 10)
CONCEPT_WEIGHT = Fraction(4, 10)
MIN_CORRECT_SCORE = 4


def _coverage(text: str, required: tuple[str, ...]) -> tuple[Fraction, list[str]]:
    lowered = text.lower()
    matched = [term for term in required if term.lower() in lowered]
    return Fraction(len(matched), max(len(required), 1)), matched


def score_short_answer_locally(question: ShortAnswerQuestion, text: str) -> int:
    """Keyword/concept coverage score in [0, level]."""
    criteria = question.evaluation_criteria
    keyword_coverage, _ = _coverage(text, criteria.required_keywords)
    concept_coverage, _ = _coverage(text, criteria.required_concepts)
    raw = question.level * (KEYWORD_WEIGHT * keyword_coverage + CONCEPT_WEIGHT * concept_coverage)
    return clamp(round_half_up(raw), 0, question.level)


def correct_threshold(level: int) -> int:
    return max(level - 2, MIN_CORRECT_SCORE)


async def evaluate_short_answer(
    question: Any,
    text: Any,
    grader: ShortAnswerGrader | None = None,
) -> QuestionResponse:
    """
    Score a free-text answer.

    Answers under ``min_words`` score 0 without consulting any scorer. Answers
    over ``max_words`` are capped at ``level - 2``.
    """
    try:
        question = coerce_question(question, ShortAnswerQuestion)
    except QuestionValidationError as e:
        return diagnostic_response(question, text, "; ".join(e.errors))

    errors = check_question(question)
    if errors:
        return diagnostic_response(question, text, "; ".join(errors))

    if not isinstance(text, str):
        return diagnostic_response(question, text, "answer must be text")

    words = word_count(text)
    if question.min_words and words < question.min_words:
        return QuestionResponse(
            question_id=question.id,
            type=question.type,
            answer=text,
            is_correct=False,
            score=0,
            feedback=f"Answer too short. Minimum {question.min_words} words required.",
        )

    score: int | None = None
    grader_feedback = ""
    if grader is not None:
        try:
            result = await grader.grade(question, text)
            score = clamp(round_half_up(result.score), 0, question.level)
            grader_feedback = result.feedback
        except (GradingProviderError, asyncio.TimeoutError) as e:
            logger.warning(f"External grading failed for {question.id}, using local scoring: {e}")

    if score is None:
        score = score_short_answer_locally(question, text)

    detail = ""
    if question.max_words and words > question.max_words:
        score = min(score, max(question.level - 2, 0))
        detail = f"Answer too long. Maximum {question.max_words} words allowed."

    is_correct = score >= correct_threshold(question.level)
    if grader_feedback:
        feedback = " ".join(p for p in (detail, grader_feedback) if p)
    else:
        if not is_correct and not detail:
            detail = "Consider including more scientific terminology and key concepts."
        feedback = build_feedback(is_correct, score, question.level, question.explanation, detail)

    return QuestionResponse(
        question_id=question.id,
        type=question.type,
        answer=text,
        is_correct=is_correct,
        score=score,
        feedback=feedback,
    )


@register(QuestionType.SHORT_ANSWER)
class ShortAnswerEvaluator:
    """Evaluator for short answer questions."""

    def check(self, question: ShortAnswerQuestion) -> list[str]:
        return check_question(question)

    async def score(
        self,
        question: Any,
        answer: Any,
        grader: ShortAnswerGrader | None = None,
    ) -> QuestionResponse:
        return await evaluate_short_answer(question, answer, grader=grader)

    def hint(self, question: ShortAnswerQuestion, attempt: int) -> str | None:
        """First the required keywords, then the required concepts."""
        criteria = question.evaluation_criteria
        if attempt == 1 and criteria.required_keywords:
            return f"Try to use these terms: {', '.join(criteria.required_keywords)}"
        if attempt == 2 and criteria.required_concepts:
            return f"Make sure you explain: {', '.join(criteria.required_concepts)}"
        return None
