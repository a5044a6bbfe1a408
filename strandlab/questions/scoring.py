"""
Shared scoring policy for partially-correct answers.
"""

from __future__ import annotations

import math
from fractions import Fraction

# (minimum fraction correct, points deducted from the question level)
SCORE_BUCKETS: tuple[tuple[Fraction, int], ...] = (
    (Fraction(90, 100), 0),
    (Fraction(70, 100), 1),
    (Fraction(50, 100), 2),
    (Fraction(30, 100), 3),
)

CORRECT_FRACTION = Fraction(70, 100)


def bucket_score(level: int, fraction_correct: Fraction | float) -> int:
    """
    Map a fraction of correct parts to an integer score in [0, level].

    The score is a step function with breakpoints at 0.30/0.50/0.70/0.90.
    """
    fraction = Fraction(fraction_correct).limit_denominator(10_000)
    for threshold, deduction in SCORE_BUCKETS:
        if fraction >= threshold:
            return max(level - deduction, 0)
    return 0


def passes(fraction_correct: Fraction | float) -> bool:
    """A partially-scored answer counts as correct from 70% upward."""
    return Fraction(fraction_correct).limit_denominator(10_000) >= CORRECT_FRACTION


def round_half_up(value: float | Fraction) -> int:
    """Round .5 away from zero for non-negative values (2.5 -> 3). Exact for Fractions."""
    return int(math.floor(value + Fraction(1, 2)))


def word_count(text: str) -> int:
    return len(text.split())


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
