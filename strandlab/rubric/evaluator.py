"""
Rubric grading of free-form written work.

The final level is a weighted blend of five component levels:

    keyword 0.3, concept 0.3, length 0.2, structure 0.1, image 0.1

rounded half-up and clamped to 0..8. Output is fully determined by the text
and the rubric.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from fractions import Fraction

from loguru import logger

from strandlab.questions.models import MAX_LEVEL
from strandlab.questions.scoring import clamp, round_half_up, word_count

from .image_classifier import FilenameGraphClassifier, GraphClassifier, image_level
from .models import RubricBook, RubricEntry, StrandRubric
from .table_structure import check_table_structure, parse_artifact

WEIGHTS = {
    "keyword": Fraction(3, 10),
    "concept": Fraction(3, 10),
    "length": Fraction(2, 10),
    "structure": Fraction(1, 10),
    "image": Fraction(1, 10),
}
MAX_SUGGESTIONS = 5
MIN_SUGGESTIONS = 3

# (minimum words, level), highest first
LENGTH_BUCKETS = ((150, 8), (100, 6), (50, 4), (20, 2))

NO_RUBRIC_SUGGESTION = "No rubric data found for this strand."


@dataclass(frozen=True)
class MatchedEntry:
    label: str
    level: int


@dataclass(frozen=True)
class RubricResult:
    level: int
    keyword_level: int = 0
    concept_level: int = 0
    structure_level: int = 0
    image_level: int = 0
    length_level: int = 0
    word_count: int = 0
    matched_keywords: list[MatchedEntry] = field(default_factory=list)
    matched_concepts: list[MatchedEntry] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def length_level(words: int) -> int:
    for minimum, level in LENGTH_BUCKETS:
        if words >= minimum:
            return level
    return 0


def _match_entries(entries: tuple[RubricEntry, ...], lowered: str) -> tuple[int, list[MatchedEntry]]:
    matched = [MatchedEntry(e.label, e.level) for e in entries if e.matches(lowered)]
    return max((m.level for m in matched), default=0), matched


def _gap_suggestions(
    entries: tuple[RubricEntry, ...],
    current_level: int,
    matched: list[MatchedEntry],
    kind: str,
) -> list[str]:
    """One suggestion per unmatched entry at the next level above ``current_level``."""
    higher = sorted({e.level for e in entries if e.level > current_level})
    if not higher:
        return []
    target = higher[0]
    matched_labels = {m.label for m in matched}
    suggestions = []
    for entry in entries:
        if entry.level != target or entry.label in matched_labels:
            continue
        if kind == "keyword":
            suggestions.append(f"Use terms like \"{entry.words[0]}\" to reach level {target}.")
        else:
            suggestions.append(f"Explain {entry.label} to reach level {target}.")
    return suggestions


class RubricEvaluator:
    """Grades written artifacts against the rubric book."""

    def __init__(self, book: RubricBook, classifier: GraphClassifier | None = None):
        self.book = book
        self.classifier = classifier or FilenameGraphClassifier()

    def evaluate(self, text: str, learning_path: str, strand: int) -> RubricResult:
        rubric = self.book.get(learning_path, strand)
        if rubric is None:
            logger.warning(f"No rubric for {learning_path} strand {strand}")
            return RubricResult(level=0, suggestions=[NO_RUBRIC_SUGGESTION])
        return evaluate_text(text, rubric, self.classifier)


def evaluate_text(
    text: str,
    rubric: StrandRubric,
    classifier: GraphClassifier | None = None,
) -> RubricResult:
    """Score one artifact against one strand rubric."""
    classifier = classifier or FilenameGraphClassifier()
    artifact = parse_artifact(text)
    lowered = artifact.text.lower()

    keyword_level, matched_keywords = _match_entries(rubric.keywords, lowered)
    concept_level, matched_concepts = _match_entries(rubric.concepts, lowered)

    structural: list[str] = []
    table = check_table_structure(artifact)
    structural.extend(table.suggestions)

    graph_level = 0
    source = artifact.first_image_src
    if source is not None:
        graph_level, image_suggestions = image_level(classifier.classify(source))
        structural.extend(image_suggestions)

    words = word_count(artifact.text)
    words_level = length_level(words)

    weighted = (
        WEIGHTS["keyword"] * keyword_level
        + WEIGHTS["concept"] * concept_level
        + WEIGHTS["length"] * words_level
        + WEIGHTS["structure"] * table.score
        + WEIGHTS["image"] * graph_level
    )
    final_level = clamp(round_half_up(weighted), 0, MAX_LEVEL)

    suggestions = structural
    suggestions += _gap_suggestions(rubric.keywords, keyword_level, matched_keywords, "keyword")
    suggestions += _gap_suggestions(rubric.concepts, concept_level, matched_concepts, "concept")
    if len(suggestions) < MIN_SUGGESTIONS:
        for filler in rubric.suggestions:
            if len(suggestions) >= MIN_SUGGESTIONS:
                break
            if filler not in suggestions:
                suggestions.append(filler)

    return RubricResult(
        level=final_level,
        keyword_level=keyword_level,
        concept_level=concept_level,
        structure_level=table.score,
        image_level=graph_level,
        length_level=words_level,
        word_count=words,
        matched_keywords=matched_keywords,
        matched_concepts=matched_concepts,
        suggestions=suggestions[:MAX_SUGGESTIONS],
    )
