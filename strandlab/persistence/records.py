"""
Persistence collaborator contract.

The block machine only ever calls ``save_response(record)``; session resume
calls ``load_responses(filter)``. Implementations raise PersistenceError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from strandlab.questions.base import QuestionResponse

DEFAULT_LEARNER = "local"


@dataclass(frozen=True)
class ResponseRecord:
    """One saved response with the block coordinates it was given in."""

    learner_id: str
    learning_path: str
    strand: int
    level: int
    block_id: str
    response: QuestionResponse

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "learner_id": self.learner_id,
            "learning_path": self.learning_path,
            "strand": self.strand,
            "level": self.level,
            "block_id": self.block_id,
            "response": self.response.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResponseRecord":
        """Create from dictionary."""
        return cls(
            learner_id=data["learner_id"],
            learning_path=data["learning_path"],
            strand=int(data["strand"]),
            level=int(data["level"]),
            block_id=data["block_id"],
            response=QuestionResponse.from_dict(data["response"]),
        )


@dataclass(frozen=True)
class ResponseFilter:
    """Narrows ``load_responses``. None fields match everything."""

    learner_id: str | None = None
    learning_path: str | None = None
    strand: int | None = None
    level: int | None = None

    def matches(self, record: ResponseRecord) -> bool:
        return (
            (self.learner_id is None or record.learner_id == self.learner_id)
            and (self.learning_path is None or record.learning_path == self.learning_path)
            and (self.strand is None or record.strand == self.strand)
            and (self.level is None or record.level == self.level)
        )


class ResponseRepository(Protocol):
    """Where block machines send their responses."""

    def save_response(self, record: ResponseRecord) -> None:
        ...

    def load_responses(self, filter: ResponseFilter) -> dict[str, QuestionResponse]:
        """Latest response per question id among matching records."""
        ...


class NullResponseRepository:
    """Keeps nothing. Used when persistence is switched off."""

    def save_response(self, record: ResponseRecord) -> None:
        return None

    def load_responses(self, filter: ResponseFilter) -> dict[str, QuestionResponse]:
        return {}


def latest_by_question(records: list[ResponseRecord]) -> dict[str, QuestionResponse]:
    """Collapse records to the most recent response per question id."""
    latest: dict[str, QuestionResponse] = {}
    for record in sorted(records, key=lambda r: r.response.timestamp):
        latest[record.response.question_id] = record.response
    return latest
