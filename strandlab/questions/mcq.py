"""
MCQ (Multiple Choice Question) evaluator.

- Exactly one option is correct and earns the full question level.
- A wrong option may declare a partial-credit level of its own.
"""

from __future__ import annotations

from typing import Any

from strandlab.errors import QuestionValidationError

from . import QuestionType, register
from .base import QuestionResponse, diagnostic_response
from .feedback import build_feedback
from .models import MCQQuestion, check_question, coerce_question
from .scoring import clamp


def evaluate_mcq(question: Any, selected_option_id: Any) -> QuestionResponse:
    """Score a single selected option id."""
    try:
        question = coerce_question(question, MCQQuestion)
    except QuestionValidationError as e:
        return diagnostic_response(question, selected_option_id, "; ".join(e.errors))

    errors = check_question(question)
    if errors:
        return diagnostic_response(question, selected_option_id, "; ".join(errors))

    if not isinstance(selected_option_id, str) or not selected_option_id:
        return diagnostic_response(question, selected_option_id, "no option selected")

    option = question.option(selected_option_id)
    if option is None:
        return diagnostic_response(
            question, selected_option_id, f"unknown option '{selected_option_id}'"
        )

    if option.is_correct:
        score = question.level
    else:
        score = clamp(option.level or 0, 0, question.level)

    detail = "Correct!" if option.is_correct else "Not quite."
    return QuestionResponse(
        question_id=question.id,
        type=question.type,
        answer=selected_option_id,
        is_correct=option.is_correct,
        score=score,
        feedback=build_feedback(option.is_correct, score, question.level, question.explanation, detail),
    )


@register(QuestionType.MCQ)
class MCQEvaluator:
    """Evaluator for multiple choice questions."""

    def check(self, question: MCQQuestion) -> list[str]:
        return check_question(question)

    async def score(self, question: Any, answer: Any, grader: Any = None) -> QuestionResponse:
        return evaluate_mcq(question, answer)

    def hint(self, question: MCQQuestion, attempt: int) -> str | None:
        """Eliminate one wrong option per attempt, in declared order.

        At least one wrong option always stays in play.
        """
        wrong = [o.text for o in question.options if not o.is_correct]
        if 1 <= attempt < len(wrong):
            return f"'{wrong[attempt - 1]}' is NOT the answer"
        return None
