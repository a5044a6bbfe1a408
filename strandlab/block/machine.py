"""
Question block state machine.

One block is the ordered list of questions for a (strand, level). The learner
moves through it one question at a time:

    LOCKED --unlock--> ACTIVE(0)
    ACTIVE(i) --submit--> FEEDBACK(i)
    FEEDBACK(i) --delay--> ACTIVE(i+1)       (i not last)
    FEEDBACK(last) --delay--> COMPLETED      (score reported, unlock decided)
    FEEDBACK(i) --retry--> ACTIVE(i)         (incorrect, attempts left)
    any but LOCKED --reset--> ACTIVE(0)

The feedback delay is an asyncio task owned by the machine. With
auto_advance off, the delay only enables ``advance()``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

from config import get_settings
from strandlab.errors import (
    InvalidTransitionError,
    PersistenceError,
    ProgressStoreDisposedError,
    QuestionValidationError,
    SubmissionInFlightError,
)
from strandlab.persistence.records import DEFAULT_LEARNER, ResponseRecord
from strandlab.progress.events import EventEmitter, LevelUnlocked
from strandlab.questions import evaluate_answer, question_hint
from strandlab.questions.base import QuestionResponse
from strandlab.questions.models import LEVELS, parse_question
from strandlab.questions.scoring import round_half_up

from .performance import PerformanceSummary, PerformanceTracker

if TYPE_CHECKING:
    from strandlab.integrations.grading_client import ShortAnswerGrader
    from strandlab.persistence.records import ResponseRepository
    from strandlab.progress.store import ProgressStore

Scorer = Callable[[Any, Any], Awaitable[QuestionResponse]]


class BlockPhase(str, Enum):
    LOCKED = "locked"
    ACTIVE = "active"
    FEEDBACK = "feedback"
    COMPLETED = "completed"


@dataclass(frozen=True)
class BlockState:
    phase: BlockPhase
    index: int  # current question; meaningless when LOCKED or COMPLETED


@dataclass(frozen=True)
class HintInfo:
    """Unscored help surfaced after repeated incorrect answers."""
    concept: str
    keywords: tuple[str, ...]
    text: str | None


@dataclass(frozen=True)
class BlockSummary:
    """The reported outcome of a completed block run."""
    block_id: str
    strand: int
    level: int
    average: float
    score: int
    correct_count: int
    total_questions: int
    attempts: int
    unlocked_level: int | None
    celebrate: bool
    responses: tuple[QuestionResponse, ...]
    performance: PerformanceSummary | None = None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_level is not None

    def to_dict(self) -> dict:
        return {
            "block_id": self.block_id,
            "strand": self.strand,
            "level": self.level,
            "average": self.average,
            "score": self.score,
            "correct_count": self.correct_count,
            "total_questions": self.total_questions,
            "attempts": self.attempts,
            "unlocked_level": self.unlocked_level,
            "celebrate": self.celebrate,
            "responses": [r.to_dict() for r in self.responses],
            "performance": self.performance.to_dict() if self.performance else None,
        }


def next_level(level: int) -> int | None:
    """The level a completed block unlocks: 2 -> 4 -> 6 -> 8 -> None."""
    if level not in LEVELS:
        return None
    position = LEVELS.index(level)
    return LEVELS[position + 1] if position + 1 < len(LEVELS) else None


def question_id_of(question: Any) -> str:
    if isinstance(question, dict):
        return str(question.get("id") or "")
    return str(getattr(question, "id", "") or "")


class QuestionBlockMachine:
    """
    Drives one block run: answer, feedback, advance, complete.

    Learner actions are ``submit``, ``advance``, ``retry``, ``reset`` and
    ``unlock``. Misuse raises InvalidTransitionError. Only completed runs are
    reported to the progress store.
    """

    def __init__(
        self,
        block_id: str,
        level: int,
        questions: Sequence[Any],
        *,
        strand: int | None = None,
        learning_path: str = "",
        learner_id: str = DEFAULT_LEARNER,
        progress: "ProgressStore | None" = None,
        repository: "ResponseRepository | None" = None,
        grader: "ShortAnswerGrader | None" = None,
        emitter: EventEmitter | None = None,
        locked: bool = False,
        auto_advance: bool | None = None,
        delay_correct: float | None = None,
        delay_incorrect: float | None = None,
        max_attempts: int | None = None,
        unlock_threshold: float | None = None,
        celebration_threshold: float | None = None,
        hint_after_incorrect: int | None = None,
        on_complete: Callable[[BlockSummary], None] | None = None,
    ):
        if not questions:
            raise ValueError(f"Block {block_id} has no questions")

        config = get_settings().get_block_config()
        self.block_id = block_id
        self.level = level
        self.questions: tuple[Any, ...] = tuple(questions)
        self.learning_path = learning_path
        self.learner_id = learner_id
        self.progress = progress
        self.repository = repository
        self.grader = grader
        self.emitter = emitter or (progress.emitter if progress is not None else EventEmitter())
        self.auto_advance = config["auto_advance"] if auto_advance is None else auto_advance
        self.delay_correct = config["feedback_delay"]["correct"] if delay_correct is None else delay_correct
        self.delay_incorrect = (
            config["feedback_delay"]["incorrect"] if delay_incorrect is None else delay_incorrect
        )
        self.max_attempts = config["max_attempts"] if max_attempts is None else max_attempts
        self.unlock_threshold = config["unlock_threshold"] if unlock_threshold is None else unlock_threshold
        self.celebration_threshold = (
            config["celebration_threshold"] if celebration_threshold is None else celebration_threshold
        )
        self.hint_after_incorrect = (
            config["hint_after_incorrect"] if hint_after_incorrect is None else hint_after_incorrect
        )
        self.on_complete = on_complete

        # Parsed copies for hints only; scoring always goes through the evaluator
        self._parsed: list[Any] = []
        for question in self.questions:
            try:
                self._parsed.append(parse_question(question))
            except QuestionValidationError:
                self._parsed.append(None)

        if strand is None:
            strand = next((q.strand for q in self._parsed if q is not None), 1)
        self.strand = strand

        self.tracker = PerformanceTracker()
        self._phase = BlockPhase.LOCKED if locked else BlockPhase.ACTIVE
        self._generation = 0
        self._advance_task: asyncio.Task | None = None
        self._start_run()

    # ----------------------------------------------------------------- state

    def _start_run(self) -> None:
        self._index = 0
        self._responses: list[QuestionResponse | None] = [None] * len(self.questions)
        self._misses = [0] * len(self.questions)
        self._tries = [0] * len(self.questions)
        self.attempts = 0
        self._in_flight: int | None = None
        self._can_continue = False
        self.summary: BlockSummary | None = None
        self._question_started = time.monotonic()
        self.tracker.reset()

    @property
    def state(self) -> BlockState:
        return BlockState(self._phase, self._index)

    @property
    def phase(self) -> BlockPhase:
        return self._phase

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Any:
        if self._phase in (BlockPhase.ACTIVE, BlockPhase.FEEDBACK):
            return self.questions[self._index]
        return None

    @property
    def current_response(self) -> QuestionResponse | None:
        if self._phase in (BlockPhase.ACTIVE, BlockPhase.FEEDBACK):
            return self._responses[self._index]
        return None

    @property
    def responses(self) -> tuple[QuestionResponse | None, ...]:
        return tuple(self._responses)

    @property
    def can_continue(self) -> bool:
        return self._phase is BlockPhase.FEEDBACK and self._can_continue

    @property
    def can_retry(self) -> bool:
        response = self.current_response
        return (
            self._phase is BlockPhase.FEEDBACK
            and response is not None
            and not response.is_correct
            and self.attempts < self.max_attempts
        )

    @property
    def is_completed(self) -> bool:
        return self._phase is BlockPhase.COMPLETED

    @property
    def hint(self) -> HintInfo | None:
        """Concept, keywords and evaluator hint once enough incorrect answers pile up."""
        if self._phase not in (BlockPhase.ACTIVE, BlockPhase.FEEDBACK):
            return None
        if self.attempts < self.hint_after_incorrect:
            return None
        parsed = self._parsed[self._index]
        if parsed is None:
            return None
        return HintInfo(
            concept=parsed.concept,
            keywords=tuple(parsed.keywords),
            text=question_hint(parsed, max(self._misses[self._index], 1)),
        )

    # ----------------------------------------------------------------- actions

    def unlock(self) -> bool:
        """LOCKED -> ACTIVE(0). Returns False if the block was already unlocked."""
        if self._phase is not BlockPhase.LOCKED:
            return False
        self._phase = BlockPhase.ACTIVE
        self._question_started = time.monotonic()
        logger.info(f"Block {self.block_id} unlocked")
        return True

    async def submit(
        self,
        answer: Any,
        *,
        time_spent: float | None = None,
        scorer: Scorer | None = None,
    ) -> QuestionResponse | None:
        """
        Score the answer to the current question and move to FEEDBACK.

        Returns None when the run moved on (reset) while the answer was being
        scored; the late result is discarded.
        """
        if self._phase is not BlockPhase.ACTIVE:
            raise InvalidTransitionError(f"Cannot submit while block is {self._phase.value}")
        if self._in_flight == self._index:
            raise SubmissionInFlightError(f"Question {self._index} is already being scored")

        generation = self._generation
        index = self._index
        question = self.questions[index]
        question_id = question_id_of(question)

        self._in_flight = index
        try:
            if scorer is not None:
                response = await scorer(question, answer)
            else:
                response = await evaluate_answer(question, answer, grader=self.grader)
        finally:
            if generation == self._generation and self._in_flight == index:
                self._in_flight = None

        if (
            generation != self._generation
            or self._phase is not BlockPhase.ACTIVE
            or self._index != index
            or question_id_of(self.questions[self._index]) != question_id
        ):
            logger.debug(f"Discarding stale result for {question_id} in block {self.block_id}")
            return None

        if time_spent is None:
            time_spent = time.monotonic() - self._question_started
        response = dataclasses.replace(response, time_spent=time_spent)

        self._responses[index] = response
        self._tries[index] += 1
        if not response.is_correct:
            self.attempts += 1
            self._misses[index] += 1
        self.tracker.record(response, attempts=self._tries[index])
        self._save(response)

        self._phase = BlockPhase.FEEDBACK
        self._can_continue = False
        logger.debug(
            f"Block {self.block_id} question {index + 1}/{len(self.questions)}: "
            f"score {response.score}, correct={response.is_correct}"
        )
        self._schedule_advance(response.is_correct)
        return response

    def advance(self) -> None:
        """Take the FEEDBACK transition once the feedback delay has elapsed."""
        if self._phase is not BlockPhase.FEEDBACK:
            raise InvalidTransitionError(f"Cannot advance while block is {self._phase.value}")
        if not self._can_continue:
            raise InvalidTransitionError("Feedback delay has not elapsed")
        self._cancel_pending()
        self._advance()

    def retry(self) -> None:
        """FEEDBACK(i) -> ACTIVE(i) after an incorrect answer, while attempts remain."""
        if self._phase is not BlockPhase.FEEDBACK:
            raise InvalidTransitionError(f"Cannot retry while block is {self._phase.value}")
        if not self.can_retry:
            raise InvalidTransitionError(
                f"Retry not allowed (correct answer or {self.attempts}/{self.max_attempts} attempts used)"
            )
        self._cancel_pending()
        self._phase = BlockPhase.ACTIVE
        self._can_continue = False
        self._question_started = time.monotonic()
        logger.debug(f"Block {self.block_id} retrying question {self._index + 1}")

    def reset(self) -> None:
        """Start the run over from the first question."""
        if self._phase is BlockPhase.LOCKED:
            raise InvalidTransitionError("Cannot reset a locked block")
        self._cancel_pending()
        self._generation += 1
        self._phase = BlockPhase.ACTIVE
        self._start_run()
        logger.debug(f"Block {self.block_id} reset (run {self._generation})")

    async def wait_for_transition(self) -> None:
        """Wait for the pending feedback delay, if any, to finish."""
        task = self._advance_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def close(self) -> None:
        """Cancel any pending delayed transition."""
        self._cancel_pending()

    # ----------------------------------------------------------------- internals

    def _save(self, response: QuestionResponse) -> None:
        if self.repository is None:
            return
        record = ResponseRecord(
            learner_id=self.learner_id,
            learning_path=self.learning_path,
            strand=self.strand,
            level=self.level,
            block_id=self.block_id,
            response=response,
        )
        try:
            self.repository.save_response(record)
        except PersistenceError as e:
            logger.warning(f"Could not save response {response.question_id}: {e}")

    def _schedule_advance(self, correct: bool) -> None:
        self._cancel_pending()
        delay = self.delay_correct if correct else self.delay_incorrect
        self._advance_task = asyncio.create_task(self._after_delay(delay, self._generation))
        self._advance_task.add_done_callback(self._log_task_failure)

    async def _after_delay(self, delay: float, generation: int) -> None:
        await asyncio.sleep(delay)
        if generation != self._generation or self._phase is not BlockPhase.FEEDBACK:
            return
        self._can_continue = True
        if self.auto_advance:
            self._advance()

    def _log_task_failure(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error(f"Delayed transition failed in block {self.block_id}")

    def _cancel_pending(self) -> None:
        task = self._advance_task
        self._advance_task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    def _advance(self) -> None:
        self._can_continue = False
        if self._index < len(self.questions) - 1:
            self._index += 1
            self._phase = BlockPhase.ACTIVE
            self._question_started = time.monotonic()
            logger.debug(f"Block {self.block_id} advanced to question {self._index + 1}")
        else:
            self._complete()

    def _complete(self) -> None:
        responses = tuple(r for r in self._responses if r is not None)
        average = sum(r.score for r in responses) / len(self.questions)
        score = round_half_up(average)
        unlocked_level = next_level(self.level) if average >= self.unlock_threshold else None

        self.summary = BlockSummary(
            block_id=self.block_id,
            strand=self.strand,
            level=self.level,
            average=average,
            score=score,
            correct_count=sum(1 for r in responses if r.is_correct),
            total_questions=len(self.questions),
            attempts=self.attempts,
            unlocked_level=unlocked_level,
            celebrate=average >= self.celebration_threshold,
            responses=responses,
            performance=self.tracker.summary(),
        )
        self._phase = BlockPhase.COMPLETED
        logger.info(
            f"Block {self.block_id} completed: average {average:.2f}, score {score}"
            + (f", level {unlocked_level} unlocked" if unlocked_level else "")
        )

        if self.progress is not None:
            try:
                self.progress.record_score(self.strand, self.level, score)
            except ProgressStoreDisposedError:
                logger.warning(f"Block {self.block_id} completed after its session ended; score not recorded")
        if unlocked_level is not None:
            self.emitter.emit(LevelUnlocked(strand=self.strand, level=unlocked_level, block_id=self.block_id))
        if self.on_complete is not None:
            self.on_complete(self.summary)
