"""
Base protocol and types for question evaluators.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

from .models import QuestionType

if TYPE_CHECKING:
    from strandlab.integrations.grading_client import ShortAnswerGrader

    from .models import BaseQuestion


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QuestionResponse:
    """
    The scored result of one submission.

    Created once per submission and never mutated; a retry produces a new
    response.
    """
    question_id: str
    type: str
    answer: Any
    is_correct: bool
    score: int  # 0..question.level
    feedback: str
    timestamp: datetime = field(default_factory=_utcnow)
    time_spent: float | None = None  # seconds
    diagnostic: bool = False  # True when the question or payload was malformed

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionResponse":
        """Create from dictionary."""
        data = dict(data)
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            data["timestamp"] = datetime.fromisoformat(timestamp)
        return cls(**data)


def _field(question: Any, name: str, default: Any = "") -> Any:
    if isinstance(question, dict):
        return question.get(name, default)
    return getattr(question, name, default)


def diagnostic_response(question: Any, answer: Any, reason: str) -> QuestionResponse:
    """
    Build the zero-score response returned for malformed questions or answers.

    Accepts a parsed question or the raw mapping that failed to parse.
    """
    question_id = str(_field(question, "id") or "")
    question_type = _field(question, "type")
    if isinstance(question_type, QuestionType):
        question_type = question_type.value
    logger.warning(f"Diagnostic response for question {question_id or '<unknown>'}: {reason}")
    return QuestionResponse(
        question_id=question_id,
        type=str(question_type or ""),
        answer=answer,
        is_correct=False,
        score=0,
        feedback=f"This question could not be scored: {reason}",
        diagnostic=True,
    )


class QuestionEvaluator(Protocol):
    """Protocol for question type evaluators."""

    def check(self, question: "BaseQuestion") -> list[str]:
        """Report invariant violations for this kind. Empty list means valid."""
        ...

    async def score(
        self,
        question: Any,
        answer: Any,
        grader: "ShortAnswerGrader | None" = None,
    ) -> QuestionResponse:
        """Score one answer. Never raises for malformed input."""
        ...

    def hint(self, question: "BaseQuestion", attempt: int) -> str | None:
        """Get progressive hint for attempt N. Returns None if no hint available."""
        ...
