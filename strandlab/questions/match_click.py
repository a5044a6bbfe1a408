"""
Match-click evaluator.

The learner pairs left items with right items. Score is the fraction of the
canonical pairing the submission reproduces, bucketed like fill-blank.
Submission order does not matter and repeated pairs count once. Each left item
and each right item may appear in at most one distinct pair.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from fractions import Fraction
from typing import Any

from strandlab.errors import QuestionValidationError

from . import QuestionType, register
from .base import QuestionResponse, diagnostic_response
from .feedback import build_feedback
from .models import MatchClickQuestion, MatchPair, check_question, coerce_question
from .scoring import bucket_score, passes


def _pair(item: Any) -> tuple[str, str] | None:
    if isinstance(item, MatchPair):
        return item.as_tuple()
    if isinstance(item, Mapping):
        left = item.get("leftId", item.get("left_id"))
        right = item.get("rightId", item.get("right_id"))
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        left, right = item
    else:
        return None
    if not isinstance(left, str) or not isinstance(right, str):
        return None
    return (left, right)


def _submitted_pairs(matches: Any) -> set[tuple[str, str]] | None:
    if isinstance(matches, Mapping):
        # {left_id: right_id}
        items: Iterable[Any] = matches.items()
    elif isinstance(matches, Iterable) and not isinstance(matches, (str, bytes)):
        items = matches
    else:
        return None

    pairs = set()
    for item in items:
        pair = _pair(item)
        if pair is None:
            return None
        pairs.add(pair)
    return pairs


def _reused_ids(pairs: set[tuple[str, str]]) -> list[str]:
    lefts = Counter(left for left, _ in pairs)
    rights = Counter(right for _, right in pairs)
    return sorted(
        [i for i, n in lefts.items() if n > 1] + [i for i, n in rights.items() if n > 1]
    )


def evaluate_match_click(question: Any, matches: Any) -> QuestionResponse:
    """Score a collection of (left_id, right_id) pairs."""
    try:
        question = coerce_question(question, MatchClickQuestion)
    except QuestionValidationError as e:
        return diagnostic_response(question, matches, "; ".join(e.errors))

    errors = check_question(question)
    if errors:
        return diagnostic_response(question, matches, "; ".join(errors))

    submitted = _submitted_pairs(matches)
    if submitted is None:
        return diagnostic_response(question, matches, "matches must be (left_id, right_id) pairs")

    reused = _reused_ids(submitted)
    if reused:
        return diagnostic_response(
            question, matches, f"each item may be matched only once: {', '.join(reused)}"
        )

    canonical = question.canonical_pairs()
    correct_count = len(submitted & canonical)
    fraction = Fraction(correct_count, len(canonical))
    score = bucket_score(question.level, fraction)
    is_correct = passes(fraction)

    return QuestionResponse(
        question_id=question.id,
        type=question.type,
        answer=sorted(submitted),
        is_correct=is_correct,
        score=score,
        feedback=build_feedback(
            is_correct,
            score,
            question.level,
            question.explanation,
            f"{correct_count}/{len(canonical)} matches correct.",
        ),
    )


@register(QuestionType.MATCH_CLICK)
class MatchClickEvaluator:
    """Evaluator for match-click questions."""

    def check(self, question: MatchClickQuestion) -> list[str]:
        return check_question(question)

    async def score(self, question: Any, answer: Any, grader: Any = None) -> QuestionResponse:
        return evaluate_match_click(question, answer)

    def hint(self, question: MatchClickQuestion, attempt: int) -> str | None:
        """Reveal one canonical pair per attempt, never the whole set."""
        if not 1 <= attempt < len(question.correct_matches):
            return None
        pair = question.correct_matches[attempt - 1]
        left = {i.id: i.text for i in question.left_items}.get(pair.left_id, pair.left_id)
        right = {i.id: i.text for i in question.right_items}.get(pair.right_id, pair.right_id)
        return f"Hint: '{left}' matches with '{right}'"
