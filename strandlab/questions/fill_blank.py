"""
Fill-in-the-blank evaluator.

The question text holds {blank} markers; each blank carries its own accepted
answers and case sensitivity. Scoring uses the shared bucket policy over the
fraction of blanks answered correctly.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from fractions import Fraction
from typing import Any

from strandlab.errors import QuestionValidationError

from . import QuestionType, register
from .base import QuestionResponse, diagnostic_response
from .feedback import build_feedback
from .models import FillBlankQuestion, check_question, coerce_question
from .scoring import bucket_score, passes


def _answers_by_blank(question: FillBlankQuestion, answers: Any) -> dict[str, str] | None:
    """Normalise a mapping or a positional list of answers. None if unusable."""
    if isinstance(answers, Mapping):
        return {b.id: str(answers.get(b.id, "") or "") for b in question.blanks}
    if isinstance(answers, Sequence) and not isinstance(answers, (str, bytes)):
        padded = list(answers) + [""] * len(question.blanks)
        return {b.id: str(padded[i] or "") for i, b in enumerate(question.blanks)}
    return None


def evaluate_fill_blank(question: Any, answers: Any) -> QuestionResponse:
    """Score blank answers given as {blank_id: text} or a list aligned with blanks."""
    try:
        question = coerce_question(question, FillBlankQuestion)
    except QuestionValidationError as e:
        return diagnostic_response(question, answers, "; ".join(e.errors))

    errors = check_question(question)
    if errors:
        return diagnostic_response(question, answers, "; ".join(errors))

    by_blank = _answers_by_blank(question, answers)
    if by_blank is None:
        return diagnostic_response(question, answers, "answers must be a mapping or a list")

    correct_count = sum(1 for blank in question.blanks if blank.accepts(by_blank[blank.id]))
    fraction = Fraction(correct_count, len(question.blanks))
    score = bucket_score(question.level, fraction)
    is_correct = passes(fraction)

    return QuestionResponse(
        question_id=question.id,
        type=question.type,
        answer=by_blank,
        is_correct=is_correct,
        score=score,
        feedback=build_feedback(
            is_correct,
            score,
            question.level,
            question.explanation,
            f"{correct_count}/{len(question.blanks)} blanks correct.",
        ),
    )


@register(QuestionType.FILL_BLANK)
class FillBlankEvaluator:
    """Evaluator for fill-in-the-blank questions."""

    def check(self, question: FillBlankQuestion) -> list[str]:
        return check_question(question)

    async def score(self, question: Any, answer: Any, grader: Any = None) -> QuestionResponse:
        return evaluate_fill_blank(question, answer)

    def hint(self, question: FillBlankQuestion, attempt: int) -> str | None:
        """Surface the Nth authored hint of each blank that has one."""
        hints = [
            f"Blank {i}: {blank.hints[attempt - 1]}"
            for i, blank in enumerate(question.blanks, 1)
            if attempt >= 1 and len(blank.hints) >= attempt
        ]
        return " | ".join(hints) if hints else None
