"""
Per-strand progress aggregation.

The ProgressStore is created when an assessment session starts and disposed
when it ends. It is passed explicitly to the components that report scores;
there is no module-level instance.

Rules:
- best score per strand is a monotonic max, clamped to 0..8
- each of the four badges belongs to one strand and is earned once that
  strand's best score reaches 8; a badge is never cleared
- overall progress = round(100 * sum(best) / (strands * 8))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger

from strandlab.errors import ProgressStoreDisposedError
from strandlab.questions.models import MAX_LEVEL
from strandlab.questions.scoring import clamp, round_half_up

from .events import BadgeEarned, EventEmitter, ProgressUpdated

# strand number -> badge name
BADGE_SLOTS: dict[int, str] = {
    1: "principle_pioneer",
    2: "concept_crusader",
    3: "application_ace",
    4: "analysis_architect",
}
BADGE_THRESHOLD = MAX_LEVEL

STATUS_NOT_STARTED = "not started"
STATUS_IN_PROGRESS = "in progress"
STATUS_COMPLETED = "completed"


class ProgressStore:
    """Best score per strand, badges and overall progress for one learner session."""

    def __init__(
        self,
        num_strands: int = 4,
        badge_slots: Mapping[int, str] | None = None,
        emitter: EventEmitter | None = None,
    ):
        self.num_strands = num_strands
        self.badge_slots = dict(badge_slots if badge_slots is not None else BADGE_SLOTS)
        self.emitter = emitter or EventEmitter()
        self._best: dict[int, int] = {s: 0 for s in range(1, num_strands + 1)}
        self._attempted: set[int] = set()
        self._badges: dict[str, bool] = {name: False for name in self.badge_slots.values()}
        self._disposed = False

    # ----------------------------------------------------------------- lifecycle

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """End the store's session. Further use raises ProgressStoreDisposedError."""
        if self._disposed:
            return
        self._disposed = True
        self.emitter.clear()
        logger.debug("Progress store disposed")

    def _ensure_live(self) -> None:
        if self._disposed:
            raise ProgressStoreDisposedError("Progress store used after its session ended")

    # ----------------------------------------------------------------- events

    def subscribe(self, event_type: type, listener: Callable[[Any], None]) -> Callable[[], None]:
        self._ensure_live()
        return self.emitter.subscribe(event_type, listener)

    # ----------------------------------------------------------------- updates

    def record_score(self, strand: int, level: int, score: float, source: str = "block") -> int | None:
        """
        Fold a new score into the strand's best score.

        Returns the strand's best score afterwards, or None for an unknown strand.
        """
        self._ensure_live()
        if strand not in self._best:
            logger.warning(f"Ignoring score for unknown strand {strand}")
            return None

        new_score = clamp(round_half_up(score), 0, MAX_LEVEL)
        previous = self._best[strand]
        self._best[strand] = max(previous, new_score)
        self._attempted.add(strand)

        logger.info(
            f"Progress update: strand {strand} level {level} scored {new_score} "
            f"(best {previous} -> {self._best[strand]})"
        )
        self.emitter.emit(ProgressUpdated(strand=strand, level=level, score=new_score, source=source))
        self._award_badges(strand)
        return self._best[strand]

    def _award_badges(self, strand: int) -> None:
        badge = self.badge_slots.get(strand)
        if badge is None or self._badges.get(badge):
            return
        if self._best[strand] >= BADGE_THRESHOLD:
            self._badges[badge] = True
            logger.info(f"Badge earned: {badge}")
            self.emitter.emit(BadgeEarned(badge=badge, strand=strand))

    def reset(self) -> None:
        """Clear all progress for an explicit restart of the whole assessment."""
        self._ensure_live()
        self._best = {s: 0 for s in self._best}
        self._attempted.clear()
        self._badges = {name: False for name in self._badges}
        logger.info("Progress reset")

    # ----------------------------------------------------------------- queries

    def best_score(self, strand: int) -> int:
        return self._best.get(strand, 0)

    @property
    def best_scores(self) -> list[int]:
        return [self._best[s] for s in sorted(self._best)]

    @property
    def badges(self) -> dict[str, bool]:
        return dict(self._badges)

    @property
    def earned_badges(self) -> list[str]:
        return [name for name, earned in self._badges.items() if earned]

    @property
    def overall_progress(self) -> int:
        """Percentage of the maximum possible score across strands."""
        maximum = self.num_strands * MAX_LEVEL
        if maximum == 0:
            return 0
        return round_half_up(100 * sum(self._best.values()) / maximum)

    def strand_status(self, strand: int) -> str:
        if self._best.get(strand, 0) >= MAX_LEVEL:
            return STATUS_COMPLETED
        if strand in self._attempted:
            return STATUS_IN_PROGRESS
        return STATUS_NOT_STARTED

    def snapshot(self) -> dict[str, Any]:
        """Serialisable view of the current progress."""
        return {
            "strand_scores": self.best_scores,
            "strand_status": [self.strand_status(s) for s in sorted(self._best)],
            "badges": self.badges,
            "overall_progress": self.overall_progress,
        }
