"""
Rubric models.

A rubric book maps learning path -> strand key ("strand1".."strand4") ->
StrandRubric. Each rubric lists keyword and concept entries, each scoring a
level when any of its words appears in the learner's text.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from strandlab.questions.models import MAX_LEVEL


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class RubricEntry(_Model):
    label: str
    level: int = Field(ge=0, le=MAX_LEVEL)
    words: tuple[str, ...] = Field(min_length=1)

    @field_validator("words")
    @classmethod
    def _strip_words(cls, words: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(w.strip() for w in words if w.strip())
        if not cleaned:
            raise ValueError("entry needs at least one non-empty word")
        return cleaned

    def matches(self, lowered_text: str) -> bool:
        """Case-insensitive substring match of any synonym."""
        return any(word.lower() in lowered_text for word in self.words)


class StrandRubric(_Model):
    keywords: tuple[RubricEntry, ...] = ()
    concepts: tuple[RubricEntry, ...] = ()
    suggestions: tuple[str, ...] = ()


def strand_key(strand: int) -> str:
    return f"strand{strand}"


class RubricBook(_Model):
    paths: dict[str, dict[str, StrandRubric]] = Field(default_factory=dict)

    def get(self, learning_path: str, strand: int) -> StrandRubric | None:
        return self.paths.get(learning_path, {}).get(strand_key(strand))

    def learning_paths(self) -> list[str]:
        return sorted(self.paths)
