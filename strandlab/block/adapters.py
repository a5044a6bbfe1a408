"""
Adapters for callers that report answers through the older callback shapes.

- answer_only:  on_answer(answer)
- pre_scored:   on_answer(question_id, answer, is_correct, score)

Both funnel into ``QuestionBlockMachine.submit``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from strandlab.errors import InvalidTransitionError
from strandlab.questions.base import QuestionResponse
from strandlab.questions.feedback import build_feedback
from strandlab.questions.models import QuestionType
from strandlab.questions.scoring import clamp, round_half_up

from .machine import QuestionBlockMachine, question_id_of


class CallbackAdapter:
    """Named constructors for the two legacy answer callbacks."""

    @staticmethod
    def answer_only(
        machine: QuestionBlockMachine,
    ) -> Callable[[Any], Awaitable[QuestionResponse | None]]:
        """The caller passes the raw answer; the machine scores it."""

        async def on_answer(answer: Any) -> QuestionResponse | None:
            return await machine.submit(answer)

        return on_answer

    @staticmethod
    def pre_scored(
        machine: QuestionBlockMachine,
    ) -> Callable[[str, Any, bool, float], Awaitable[QuestionResponse | None]]:
        """
        The caller already scored the answer.

        The score is clamped to the question level and the question id must
        match the machine's current question.
        """

        async def on_answer(
            question_id: str, answer: Any, is_correct: bool, score: float
        ) -> QuestionResponse | None:
            current = machine.current_question
            if current is None or question_id_of(current) != question_id:
                raise InvalidTransitionError(f"Question {question_id} is not the current question")

            level = getattr(current, "level", None)
            if level is None and isinstance(current, dict):
                level = current.get("level")
            level = int(level or machine.level)
            question_type = getattr(current, "type", None)
            if question_type is None and isinstance(current, dict):
                question_type = current.get("type", "")
            if isinstance(question_type, QuestionType):
                question_type = question_type.value
            explanation = getattr(current, "explanation", "") if not isinstance(current, dict) else ""

            bounded = clamp(round_half_up(score), 0, level)

            async def scorer(question: Any, raw_answer: Any) -> QuestionResponse:
                return QuestionResponse(
                    question_id=question_id,
                    type=str(question_type or ""),
                    answer=raw_answer,
                    is_correct=bool(is_correct),
                    score=bounded,
                    feedback=build_feedback(bool(is_correct), bounded, level, explanation),
                )

            return await machine.submit(answer, scorer=scorer)

        return on_answer
