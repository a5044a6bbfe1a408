"""
Question evaluators for assessment blocks.

Each question kind (mcq, fill-blank, match-click, short-answer) has its own
module with:
- evaluate_*(): pure scoring function for one submission
- an evaluator class registered for dispatch (check / score / hint)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from strandlab.errors import QuestionValidationError

from .base import QuestionResponse, diagnostic_response
from .models import QuestionType, parse_question

if TYPE_CHECKING:
    from strandlab.integrations.grading_client import ShortAnswerGrader

    from .base import QuestionEvaluator


# Evaluator registry - populated by @register decorator
HANDLERS: dict[QuestionType, "QuestionEvaluator"] = {}


def register(question_type: QuestionType):
    """Decorator to register a question evaluator."""
    def decorator(cls):
        HANDLERS[question_type] = cls()
        return cls
    return decorator


def get_evaluator(question_type: str | QuestionType) -> "QuestionEvaluator | None":
    """Get the evaluator for a question type."""
    if isinstance(question_type, str):
        try:
            question_type = QuestionType(question_type.lower())
        except ValueError:
            return None
    return HANDLERS.get(question_type)


async def evaluate_answer(
    question: Any,
    answer: Any,
    grader: "ShortAnswerGrader | None" = None,
) -> QuestionResponse:
    """
    Score one submission against any question kind.

    Malformed questions and unsupported kinds yield a zero-score diagnostic
    response; this function never raises for bad content.
    """
    try:
        parsed = parse_question(question)
    except QuestionValidationError as e:
        return diagnostic_response(question, answer, "; ".join(e.errors))

    evaluator = get_evaluator(parsed.type)
    if evaluator is None:
        return diagnostic_response(parsed, answer, f"unsupported question type '{parsed.type}'")
    return await evaluator.score(parsed, answer, grader=grader)


def question_hint(question: Any, attempt: int) -> str | None:
    """Progressive hint for any question kind, or None."""
    evaluator = get_evaluator(getattr(question, "type", ""))
    if evaluator is None:
        return None
    return evaluator.hint(question, attempt)


# Import evaluators to trigger registration
from . import mcq  # noqa: E402
from . import fill_blank  # noqa: E402
from . import match_click  # noqa: E402
from . import short_answer  # noqa: E402

from .fill_blank import evaluate_fill_blank  # noqa: E402
from .match_click import evaluate_match_click  # noqa: E402
from .mcq import evaluate_mcq  # noqa: E402
from .short_answer import evaluate_short_answer, score_short_answer_locally  # noqa: E402

__all__ = [
    "HANDLERS",
    "QuestionResponse",
    "QuestionType",
    "evaluate_answer",
    "evaluate_fill_blank",
    "evaluate_match_click",
    "evaluate_mcq",
    "evaluate_short_answer",
    "get_evaluator",
    "question_hint",
    "register",
    "score_short_answer_locally",
]
