"""
JSON file persistence for learner responses.

Responses are stored as one JSON file per learner in ~/.strandlab/responses/
(configurable), each holding the learner's records in save order.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from loguru import logger

from strandlab.errors import PersistenceError
from strandlab.questions.base import QuestionResponse

from .records import ResponseFilter, ResponseRecord, latest_by_question

# Default response directory
RESPONSES_DIR = Path.home() / ".strandlab" / "responses"

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonResponseRepository:
    """
    Manages response persistence as JSON files.

    Files are named {learner_id}.json. A corrupt file is reported as a
    PersistenceError rather than silently replaced.
    """

    def __init__(self, responses_dir: Path | str | None = None):
        self.responses_dir = Path(responses_dir).expanduser() if responses_dir else RESPONSES_DIR
        try:
            self.responses_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create response directory {self.responses_dir}: {e}") from e

    def _path_for(self, learner_id: str) -> Path:
        return self.responses_dir / f"{_UNSAFE.sub('_', learner_id)}.json"

    def _read(self, filepath: Path) -> list[ResponseRecord]:
        if not filepath.exists():
            return []
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [ResponseRecord.from_dict(item) for item in data]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot read responses from {filepath}: {e}") from e

    def save_response(self, record: ResponseRecord) -> None:
        """Append a record to the learner's file. The file is replaced whole, never rewritten in place."""
        filepath = self._path_for(record.learner_id)
        records = self._read(filepath)
        records.append(record)
        tmp_path = filepath.with_name(filepath.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in records], f, indent=2, default=str)
            tmp_path.replace(filepath)
        except (OSError, TypeError) as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write responses to {filepath}: {e}") from e
        logger.debug(f"Saved response {record.response.question_id} to {filepath}")

    def load_responses(self, filter: ResponseFilter) -> dict[str, QuestionResponse]:
        """Load the latest response per question for matching records."""
        if filter.learner_id is not None:
            files = [self._path_for(filter.learner_id)]
        else:
            files = sorted(self.responses_dir.glob("*.json"))

        records: list[ResponseRecord] = []
        for filepath in files:
            records.extend(r for r in self._read(filepath) if filter.matches(r))
        return latest_by_question(records)

    def delete(self, learner_id: str) -> bool:
        """Delete a learner's response file."""
        filepath = self._path_for(learner_id)
        if filepath.exists():
            filepath.unlink()
            return True
        return False
