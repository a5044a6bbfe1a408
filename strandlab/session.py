"""
Assessment session: the owner of per-learner state.

Creates the ProgressStore, the response repository and the optional grading
client at session start and disposes of them at session end. Components get
these collaborators from the session explicitly.

    async with AssessmentSession.from_settings() as session:
        strand = session.strand("critical-angle", 1)
        machine = strand.machine(2)
        await machine.submit("b")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from config import get_settings
from strandlab.block.strand import StrandSession
from strandlab.data.loader import QuestionDataset, load_question_dataset, load_rubric_book
from strandlab.errors import PersistenceError
from strandlab.integrations.grading_client import GradingClient
from strandlab.persistence import DEFAULT_LEARNER, NullResponseRepository, ResponseFilter, create_repository
from strandlab.progress.store import ProgressStore
from strandlab.questions.base import QuestionResponse
from strandlab.questions.models import MAX_LEVEL
from strandlab.rubric.evaluator import RubricEvaluator, RubricResult
from strandlab.rubric.models import RubricBook

if TYPE_CHECKING:
    from config import Settings
    from strandlab.persistence.records import ResponseRepository


class AssessmentSession:
    """One learner's assessment run across strands."""

    def __init__(
        self,
        dataset: QuestionDataset,
        rubrics: RubricBook | None = None,
        *,
        learner_id: str = DEFAULT_LEARNER,
        repository: "ResponseRepository | None" = None,
        grader: GradingClient | None = None,
        progress: ProgressStore | None = None,
        **machine_options,
    ):
        self.dataset = dataset
        self.rubrics = RubricEvaluator(rubrics or RubricBook())
        self.learner_id = learner_id
        self.repository = repository or NullResponseRepository()
        self.grader = grader
        self.progress = progress or ProgressStore()
        self.machine_options = machine_options
        self._strands: dict[tuple[str, int], StrandSession] = {}
        self._closed = False
        logger.info(f"Assessment session started for learner {learner_id}")

    @classmethod
    def from_settings(
        cls,
        settings: "Settings | None" = None,
        learner_id: str = DEFAULT_LEARNER,
    ) -> "AssessmentSession":
        """Build a session from the configured dataset, rubrics, storage and grader."""
        settings = settings or get_settings()
        return cls(
            load_question_dataset(settings.question_data_path),
            load_rubric_book(settings.rubric_data_path),
            learner_id=learner_id,
            repository=create_repository(settings),
            grader=GradingClient.from_settings(settings),
        )

    async def __aenter__(self) -> "AssessmentSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def strand(self, learning_path: str, strand: int) -> StrandSession:
        """The strand's level blocks, created on first use."""
        key = (learning_path, strand)
        if key not in self._strands:
            self._strands[key] = StrandSession(
                self.dataset,
                learning_path,
                strand,
                progress=self.progress,
                repository=self.repository,
                grader=self.grader,
                learner_id=self.learner_id,
                **self.machine_options,
            )
        return self._strands[key]

    def grade_artifact(self, text: str, learning_path: str, strand: int) -> RubricResult:
        """
        Grade written work and fold the level into strand progress.

        A rubric covers the whole strand rather than one block, so the progress
        event carries MAX_LEVEL as its level and the rubric result as its score.
        """
        result = self.rubrics.evaluate(text, learning_path, strand)
        if self.rubrics.book.get(learning_path, strand) is not None:
            self.progress.record_score(strand, MAX_LEVEL, result.level, source="rubric")
        return result

    def previous_responses(self, learning_path: str, strand: int, level: int) -> dict[str, QuestionResponse]:
        """Saved responses for a block, or an empty mapping if storage fails."""
        try:
            return self.repository.load_responses(
                ResponseFilter(learner_id=self.learner_id, learning_path=learning_path, strand=strand, level=level)
            )
        except PersistenceError as e:
            logger.warning(f"Could not load saved responses: {e}")
            return {}

    async def close(self) -> None:
        """End the session: cancel pending transitions, release the grader, dispose progress."""
        if self._closed:
            return
        self._closed = True
        for strand in self._strands.values():
            strand.close()
        if self.grader is not None:
            await self.grader.close()
        release = getattr(self.repository, "close", None)
        if release is not None:
            release()
        self.progress.dispose()
        logger.info(f"Assessment session ended for learner {self.learner_id}")
