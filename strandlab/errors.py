"""
Exception hierarchy for the assessment engine.

Evaluator-level errors (question validation, grader failures) are caught at
the evaluator boundary and converted into zero-score or fallback responses.
Block-machine misuse and loader failures propagate to the caller.
"""

from __future__ import annotations


class StrandLabError(Exception):
    """Base class for all engine errors."""


class QuestionValidationError(StrandLabError):
    """A question definition is missing the shape its declared type requires."""

    def __init__(self, question_id: str, errors: list[str]):
        self.question_id = question_id
        self.errors = errors
        super().__init__(f"Question {question_id or '<unknown>'} is invalid: {'; '.join(errors)}")


class GradingProviderError(StrandLabError):
    """The external short-answer grader failed or timed out."""


class PersistenceError(StrandLabError):
    """Saving or loading responses failed."""


class DatasetError(StrandLabError):
    """A question dataset or rubric file is missing or unparseable."""


class InvalidTransitionError(StrandLabError):
    """A learner action is not allowed in the block's current state."""


class SubmissionInFlightError(InvalidTransitionError):
    """An evaluation for this question is already pending."""


class ProgressStoreDisposedError(StrandLabError):
    """The progress store was used after its session ended."""
