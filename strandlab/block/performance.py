"""
Per-response performance classification for question blocks.

Each scored response is tagged with a difficulty (easy/medium/hard/expert)
and an efficiency (excellent/good/needs-improvement). Nothing here affects
scoring; the summary is presentation data attached to a completed block.

Difficulty points:
    time spent  > 60s: +3, > 30s: +2, > 15s: +1
    incorrect:  +2
    attempts:   +(attempts - 1)
    <=1 easy, <=3 medium, <=5 hard, otherwise expert
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

from strandlab.questions.base import QuestionResponse
from strandlab.questions.scoring import round_half_up


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class Efficiency(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"


@dataclass(frozen=True)
class QuestionMetrics:
    question_id: str
    time_spent: float  # seconds
    is_correct: bool
    score: int
    attempts: int
    difficulty: Difficulty
    efficiency: Efficiency

    def to_dict(self) -> dict:
        data = asdict(self)
        data["difficulty"] = self.difficulty.value
        data["efficiency"] = self.efficiency.value
        return data


@dataclass(frozen=True)
class PerformanceSummary:
    questions_answered: int
    correct_count: int
    accuracy: int  # percent
    average_score: float
    total_time: float
    average_time: float
    recommendations: list[str] = field(default_factory=list)
    metrics: list[QuestionMetrics] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["metrics"] = [m.to_dict() for m in self.metrics]
        return data


def classify_difficulty(time_spent: float, is_correct: bool, attempts: int) -> Difficulty:
    points = 0
    if time_spent > 60:
        points += 3
    elif time_spent > 30:
        points += 2
    elif time_spent > 15:
        points += 1

    if not is_correct:
        points += 2
    if attempts > 1:
        points += attempts - 1

    if points <= 1:
        return Difficulty.EASY
    if points <= 3:
        return Difficulty.MEDIUM
    if points <= 5:
        return Difficulty.HARD
    return Difficulty.EXPERT


def classify_efficiency(time_spent: float, is_correct: bool) -> Efficiency:
    if not is_correct:
        return Efficiency.NEEDS_IMPROVEMENT
    if time_spent < 10:
        return Efficiency.EXCELLENT
    if time_spent < 30:
        return Efficiency.GOOD
    return Efficiency.NEEDS_IMPROVEMENT


class PerformanceTracker:
    """Collects metrics for the responses of one block run."""

    def __init__(self):
        self._metrics: list[QuestionMetrics] = []

    def record(self, response: QuestionResponse, attempts: int = 1) -> QuestionMetrics:
        time_spent = response.time_spent or 0.0
        metrics = QuestionMetrics(
            question_id=response.question_id,
            time_spent=time_spent,
            is_correct=response.is_correct,
            score=response.score,
            attempts=attempts,
            difficulty=classify_difficulty(time_spent, response.is_correct, attempts),
            efficiency=classify_efficiency(time_spent, response.is_correct),
        )
        self._metrics.append(metrics)
        return metrics

    def reset(self) -> None:
        self._metrics.clear()

    @property
    def metrics(self) -> list[QuestionMetrics]:
        return list(self._metrics)

    def summary(self) -> PerformanceSummary:
        """Aggregate everything recorded so far."""
        answered = len(self._metrics)
        if answered == 0:
            return PerformanceSummary(
                questions_answered=0,
                correct_count=0,
                accuracy=0,
                average_score=0.0,
                total_time=0.0,
                average_time=0.0,
                recommendations=["Start answering questions for insights"],
            )

        correct = sum(1 for m in self._metrics if m.is_correct)
        success_rate = correct / answered
        total_time = sum(m.time_spent for m in self._metrics)
        average_time = total_time / answered

        recommendations: list[str] = []
        if success_rate >= 0.8:
            recommendations.append("Try more challenging questions")
        elif success_rate >= 0.6:
            recommendations.append("Practice more to improve consistency")
        else:
            recommendations.append("Review fundamental concepts")
        if average_time > 45:
            recommendations.append("Practice to improve speed")

        return PerformanceSummary(
            questions_answered=answered,
            correct_count=correct,
            accuracy=round_half_up(100 * correct / answered),
            average_score=sum(m.score for m in self._metrics) / answered,
            total_time=total_time,
            average_time=average_time,
            recommendations=recommendations,
            metrics=list(self._metrics),
        )
