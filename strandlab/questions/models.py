"""
Question definitions.

Questions are loaded once from the dataset and never mutated. The four kinds
form a pydantic discriminated union on ``type``; the dataset uses camelCase
keys (``isCorrect``, ``correctAnswers``, ...) and the models accept either the
alias or the field name.

Structural validation (wrong field types, unknown kind) happens in pydantic.
Content invariants (exactly one correct MCQ option, a bijective match set, ...)
are reported by :func:`check_question` so that a bad question still loads and
evaluates to a diagnostic zero-score response instead of aborting a block.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from strandlab.errors import QuestionValidationError


class QuestionType(str, Enum):
    """Supported question kinds."""
    MCQ = "mcq"
    FILL_BLANK = "fill-blank"
    MATCH_CLICK = "match-click"
    SHORT_ANSWER = "short-answer"


QuestionLevel = Literal[2, 4, 6, 8]
LEVELS: tuple[int, ...] = (2, 4, 6, 8)
MAX_LEVEL = 8


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


# ========================================
# Shared fields
# ========================================


class BaseQuestion(_Model):
    """Fields common to every question kind."""

    id: str
    level: QuestionLevel
    points: int = 0
    question: str = ""
    learning_path: str = ""
    strand: int = Field(default=1, ge=1)
    concept: str = ""
    keywords: tuple[str, ...] = ()
    explanation: str = ""

    @property
    def question_type(self) -> QuestionType:
        return QuestionType(self.type)  # type: ignore[attr-defined]


# ========================================
# MCQ
# ========================================


class MCQOption(_Model):
    id: str
    text: str = ""
    is_correct: bool = False
    level: int | None = None  # partial credit for a wrong option


class MCQQuestion(BaseQuestion):
    type: Literal["mcq"] = "mcq"
    options: tuple[MCQOption, ...] = ()

    def option(self, option_id: str) -> MCQOption | None:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None

    @property
    def correct_option(self) -> MCQOption | None:
        return next((o for o in self.options if o.is_correct), None)


# ========================================
# Fill in the blank
# ========================================


class Blank(_Model):
    id: str
    correct_answers: tuple[str, ...] = ()
    case_sensitive: bool = False
    hints: tuple[str, ...] = ()

    def accepts(self, answer: str) -> bool:
        """Check a trimmed answer against the accepted list."""
        answer = answer.strip()
        if self.case_sensitive:
            return any(answer == accepted.strip() for accepted in self.correct_answers)
        lowered = answer.lower()
        return any(lowered == accepted.strip().lower() for accepted in self.correct_answers)


class FillBlankQuestion(BaseQuestion):
    type: Literal["fill-blank"] = "fill-blank"
    text: str = ""  # template with {blank} markers
    blanks: tuple[Blank, ...] = ()


# ========================================
# Match click
# ========================================


class MatchItem(_Model):
    id: str
    text: str = ""
    image: str | None = None


class MatchPair(_Model):
    left_id: str
    right_id: str

    def as_tuple(self) -> tuple[str, str]:
        return (self.left_id, self.right_id)


class MatchClickQuestion(BaseQuestion):
    type: Literal["match-click"] = "match-click"
    left_items: tuple[MatchItem, ...] = ()
    right_items: tuple[MatchItem, ...] = ()
    correct_matches: tuple[MatchPair, ...] = ()

    def canonical_pairs(self) -> frozenset[tuple[str, str]]:
        return frozenset(pair.as_tuple() for pair in self.correct_matches)


# ========================================
# Short answer
# ========================================


class EvaluationCriteria(_Model):
    required_keywords: tuple[str, ...] = ()
    required_concepts: tuple[str, ...] = ()


class ShortAnswerQuestion(BaseQuestion):
    type: Literal["short-answer"] = "short-answer"
    min_words: int | None = None
    max_words: int | None = None
    sample_answer: str = ""
    evaluation_criteria: EvaluationCriteria = EvaluationCriteria()


Question = Annotated[
    Union[MCQQuestion, FillBlankQuestion, MatchClickQuestion, ShortAnswerQuestion],
    Field(discriminator="type"),
]

QUESTION_ADAPTER: TypeAdapter[Question] = TypeAdapter(Question)

QUESTION_CLASSES: dict[QuestionType, type[BaseQuestion]] = {
    QuestionType.MCQ: MCQQuestion,
    QuestionType.FILL_BLANK: FillBlankQuestion,
    QuestionType.MATCH_CLICK: MatchClickQuestion,
    QuestionType.SHORT_ANSWER: ShortAnswerQuestion,
}


def _format_pydantic_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_question(data: Any) -> Question:
    """
    Build a question model from a raw mapping.

    Raises:
        QuestionValidationError: if the mapping does not fit any question kind
    """
    if isinstance(data, BaseQuestion):
        return data  # type: ignore[return-value]
    try:
        return QUESTION_ADAPTER.validate_python(data)
    except ValidationError as e:
        question_id = data.get("id", "") if isinstance(data, dict) else ""
        raise QuestionValidationError(str(question_id), _format_pydantic_errors(e)) from e


def coerce_question(data: Any, expected: type[BaseQuestion]) -> Any:
    """Parse ``data`` and require it to be of kind ``expected``."""
    if isinstance(data, dict) and "type" not in data:
        data = {**data, "type": expected.model_fields["type"].default}
    question = parse_question(data)
    if not isinstance(question, expected):
        raise QuestionValidationError(
            question.id,
            [f"expected a {expected.__name__}, got {type(question).__name__}"],
        )
    return question


def check_question(question: BaseQuestion) -> list[str]:
    """
    Report content invariant violations for a parsed question.

    Returns an empty list for a well-formed question.
    """
    errors: list[str] = []
    if not question.id:
        errors.append("Question must have an id")
    if not question.question:
        errors.append("Question must have question text")

    if isinstance(question, MCQQuestion):
        if len(question.options) < 2:
            errors.append("MCQ must have at least 2 options")
        correct = sum(1 for o in question.options if o.is_correct)
        if correct != 1:
            errors.append(f"MCQ must have exactly one correct option (found {correct})")
        ids = [o.id for o in question.options]
        if len(ids) != len(set(ids)):
            errors.append("MCQ option ids must be unique")

    elif isinstance(question, FillBlankQuestion):
        if not question.blanks:
            errors.append("Fill-blank must have blanks")
        for blank in question.blanks:
            if not any(a.strip() for a in blank.correct_answers):
                errors.append(f"Blank {blank.id} must have at least one accepted answer")
        ids = [b.id for b in question.blanks]
        if len(ids) != len(set(ids)):
            errors.append("Blank ids must be unique")

    elif isinstance(question, MatchClickQuestion):
        if not question.left_items or not question.right_items:
            errors.append("Match-click must have left and right items")
        if not question.correct_matches:
            errors.append("Match-click must have correct matches")
        left_ids = {i.id for i in question.left_items}
        right_ids = {i.id for i in question.right_items}
        matched_left = [p.left_id for p in question.correct_matches]
        matched_right = [p.right_id for p in question.correct_matches]
        if sorted(matched_left) != sorted(left_ids):
            errors.append("Correct matches must pair every left item exactly once")
        if len(matched_right) != len(set(matched_right)):
            errors.append("Correct matches must use each right item at most once")
        unknown = set(matched_right) - right_ids
        if unknown:
            errors.append(f"Correct matches reference unknown right items: {sorted(unknown)}")

    elif isinstance(question, ShortAnswerQuestion):
        criteria = question.evaluation_criteria
        if not criteria.required_keywords and not criteria.required_concepts:
            errors.append("Short-answer must have required keywords or concepts")
        if (
            question.min_words is not None
            and question.max_words is not None
            and question.min_words > question.max_words
        ):
            errors.append("Short-answer min_words exceeds max_words")

    return errors
