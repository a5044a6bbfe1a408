"""
Question dataset and rubric loading.

The question dataset is a nested JSON mapping:

    {
      "<learning-path>": {
        "strand1": {
          "level2": [ {question}, ... ],
          "level4": [...],
          ...
        },
        ...
      }
    }

Questions that fail validation are kept as raw mappings so that evaluation
returns a diagnostic response for them; every problem is reported in
``QuestionDataset.issues``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from strandlab.errors import DatasetError, QuestionValidationError
from strandlab.questions.models import LEVELS, check_question, parse_question
from strandlab.rubric.models import RubricBook

_STRAND_KEY = re.compile(r"^strand(\d+)$")
_LEVEL_KEY = re.compile(r"^level(\d+)$")


def block_id_for(learning_path: str, strand: int, level: int) -> str:
    return f"{learning_path}-strand{strand}-level{level}"


@dataclass(frozen=True)
class DatasetIssue:
    location: str
    question_id: str
    message: str

    def __str__(self) -> str:
        return f"{self.location} {self.question_id or '<no id>'}: {self.message}"


@dataclass(frozen=True)
class LevelBlock:
    """The ordered questions of one (learning path, strand, level)."""
    learning_path: str
    strand: int
    level: int
    questions: tuple[Any, ...]

    @property
    def block_id(self) -> str:
        return block_id_for(self.learning_path, self.strand, self.level)


@dataclass
class QuestionDataset:
    blocks: dict[tuple[str, int, int], LevelBlock] = field(default_factory=dict)
    issues: list[DatasetIssue] = field(default_factory=list)

    def learning_paths(self) -> list[str]:
        return sorted({path for path, _, _ in self.blocks})

    def strands(self, learning_path: str) -> list[int]:
        return sorted({s for path, s, _ in self.blocks if path == learning_path})

    def levels(self, learning_path: str, strand: int) -> list[int]:
        return sorted({lvl for path, s, lvl in self.blocks if path == learning_path and s == strand})

    def block(self, learning_path: str, strand: int, level: int) -> LevelBlock | None:
        return self.blocks.get((learning_path, strand, level))

    def questions_for(self, learning_path: str, strand: int, level: int) -> tuple[Any, ...]:
        block = self.block(learning_path, strand, level)
        return block.questions if block else ()

    def iter_blocks(self) -> Iterator[LevelBlock]:
        for key in sorted(self.blocks):
            yield self.blocks[key]

    @property
    def question_count(self) -> int:
        return sum(len(b.questions) for b in self.blocks.values())


def _read_json(path: Path | str, what: str) -> Any:
    filepath = Path(path).expanduser()
    if not filepath.exists():
        raise DatasetError(f"{what} file not found: {filepath}")
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DatasetError(f"Cannot read {what} file {filepath}: {e}") from e


def parse_dataset(data: Any) -> QuestionDataset:
    """Build a dataset from the decoded JSON mapping."""
    if not isinstance(data, dict):
        raise DatasetError("Question dataset must be a mapping of learning paths")

    dataset = QuestionDataset()
    for learning_path, strands in data.items():
        if not isinstance(strands, dict):
            raise DatasetError(f"Learning path {learning_path} must map strand keys to levels")
        for strand_key, levels in strands.items():
            strand_match = _STRAND_KEY.match(strand_key)
            if strand_match is None or not isinstance(levels, dict):
                logger.warning(f"Skipping unrecognised strand entry {learning_path}/{strand_key}")
                continue
            strand = int(strand_match.group(1))
            for level_key, questions in levels.items():
                level_match = _LEVEL_KEY.match(level_key)
                if level_match is None or int(level_match.group(1)) not in LEVELS:
                    logger.warning(f"Skipping unrecognised level entry {learning_path}/{strand_key}/{level_key}")
                    continue
                if not isinstance(questions, list) or not questions:
                    logger.warning(f"Skipping empty block {learning_path}/{strand_key}/{level_key}")
                    continue
                level = int(level_match.group(1))
                location = f"{learning_path}/{strand_key}/{level_key}"
                dataset.blocks[(learning_path, strand, level)] = LevelBlock(
                    learning_path=learning_path,
                    strand=strand,
                    level=level,
                    questions=tuple(_load_question(q, location, dataset.issues) for q in questions),
                )

    logger.info(
        f"Loaded {dataset.question_count} questions in {len(dataset.blocks)} blocks"
        + (f" ({len(dataset.issues)} issues)" if dataset.issues else "")
    )
    return dataset


def _load_question(raw: Any, location: str, issues: list[DatasetIssue]) -> Any:
    question_id = str(raw.get("id", "")) if isinstance(raw, dict) else ""
    try:
        question = parse_question(raw)
    except QuestionValidationError as e:
        for message in e.errors:
            issues.append(DatasetIssue(location, question_id, message))
        logger.warning(f"Question {question_id or '<no id>'} in {location} failed validation")
        return raw

    for message in check_question(question):
        issues.append(DatasetIssue(location, question.id, message))
    return question


def load_question_dataset(path: Path | str) -> QuestionDataset:
    """
    Load the question dataset JSON file.

    Raises:
        DatasetError: if the file is missing, unreadable or not a nested mapping
    """
    return parse_dataset(_read_json(path, "Question dataset"))


def load_rubric_book(path: Path | str) -> RubricBook:
    """
    Load strand rubrics: learning path -> strand key -> rubric.

    Raises:
        DatasetError: if the file is missing, unreadable or malformed
    """
    data = _read_json(path, "Rubric")
    try:
        book = RubricBook.model_validate({"paths": data})
    except ValidationError as e:
        raise DatasetError(f"Rubric file {path} is malformed: {e.error_count()} errors") from e
    logger.debug(f"Loaded rubrics for {len(book.paths)} learning paths")
    return book
