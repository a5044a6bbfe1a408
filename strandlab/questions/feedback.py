"""
Deterministic learner feedback text.
"""

from __future__ import annotations

EXCELLENT = "Outstanding work! You truly understand this concept."
GOOD = "Great job! You're building solid understanding."
ENCOURAGING = "Good attempt! Review the key concepts and try again."

EXCELLENT_RATIO = 0.85


def build_feedback(is_correct: bool, score: int, level: int, explanation: str = "", detail: str = "") -> str:
    """Compose feedback from the outcome, an optional detail line and the explanation."""
    if is_correct:
        message = EXCELLENT if score >= level * EXCELLENT_RATIO else GOOD
    else:
        message = ENCOURAGING

    parts = [p for p in (detail, message, explanation) if p]
    return " ".join(parts)
