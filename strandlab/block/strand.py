"""
The level blocks of one strand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from config import get_settings
from strandlab.persistence.records import DEFAULT_LEARNER

from .machine import BlockPhase, BlockSummary, QuestionBlockMachine

if TYPE_CHECKING:
    from strandlab.data.loader import QuestionDataset
    from strandlab.integrations.grading_client import ShortAnswerGrader
    from strandlab.persistence.records import ResponseRepository
    from strandlab.progress.store import ProgressStore


class StrandSession:
    """
    One machine per level present in the dataset for (learning path, strand).

    With ``require_prerequisites`` every level above the first starts locked
    and is unlocked when the level below completes with a passing average.
    Otherwise all levels are open from the start.
    """

    def __init__(
        self,
        dataset: "QuestionDataset",
        learning_path: str,
        strand: int,
        *,
        progress: "ProgressStore | None" = None,
        repository: "ResponseRepository | None" = None,
        grader: "ShortAnswerGrader | None" = None,
        learner_id: str = DEFAULT_LEARNER,
        require_prerequisites: bool | None = None,
        on_complete: Callable[[BlockSummary], None] | None = None,
        **machine_options,
    ):
        if require_prerequisites is None:
            require_prerequisites = get_settings().require_prerequisites
        self.learning_path = learning_path
        self.strand = strand
        self.require_prerequisites = require_prerequisites
        self._on_complete = on_complete
        self.summaries: dict[int, BlockSummary] = {}

        levels = dataset.levels(learning_path, strand)
        self.machines: dict[int, QuestionBlockMachine] = {}
        for position, level in enumerate(levels):
            block = dataset.block(learning_path, strand, level)
            self.machines[level] = QuestionBlockMachine(
                block.block_id,
                level,
                block.questions,
                strand=strand,
                learning_path=learning_path,
                learner_id=learner_id,
                progress=progress,
                repository=repository,
                grader=grader,
                locked=require_prerequisites and position > 0,
                on_complete=self._block_completed,
                **machine_options,
            )
        logger.debug(f"Strand session {learning_path}/strand{strand} with levels {levels}")

    @property
    def levels(self) -> list[int]:
        return sorted(self.machines)

    def machine(self, level: int) -> QuestionBlockMachine:
        try:
            return self.machines[level]
        except KeyError:
            raise KeyError(f"No level {level} block in {self.learning_path} strand {self.strand}") from None

    def is_unlocked(self, level: int) -> bool:
        return self.machine(level).phase is not BlockPhase.LOCKED

    def _block_completed(self, summary: BlockSummary) -> None:
        self.summaries[summary.level] = summary
        if summary.unlocked_level is not None and summary.unlocked_level in self.machines:
            if self.machines[summary.unlocked_level].unlock():
                logger.info(f"{self.learning_path} strand {self.strand}: level {summary.unlocked_level} unlocked")
        if self._on_complete is not None:
            self._on_complete(summary)

    def close(self) -> None:
        for machine in self.machines.values():
            machine.close()
