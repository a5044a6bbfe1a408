"""
Graph image classification.

The evaluator only depends on the GraphClassifier protocol; the default
implementation sniffs the image source string for "scatter" or "bar".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class GraphType(str, Enum):
    SCATTER = "scatter"
    BAR = "bar"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class GraphInfo:
    is_graph: bool
    graph_type: GraphType
    axes_labeled: bool
    has_title: bool


NOT_A_GRAPH = GraphInfo(is_graph=False, graph_type=GraphType.UNKNOWN, axes_labeled=False, has_title=False)


class GraphClassifier(Protocol):
    def classify(self, source: str) -> GraphInfo:
        """Classify an image given its src (URL, filename or data URI)."""
        ...


class FilenameGraphClassifier:
    """Classifies by looking for the graph kind in the image source string."""

    def classify(self, source: str) -> GraphInfo:
        lowered = source.lower()
        if "scatter" in lowered:
            return GraphInfo(is_graph=True, graph_type=GraphType.SCATTER, axes_labeled=True, has_title=True)
        if "bar" in lowered:
            return GraphInfo(is_graph=True, graph_type=GraphType.BAR, axes_labeled=True, has_title=False)
        return NOT_A_GRAPH


def image_level(info: GraphInfo) -> tuple[int, list[str]]:
    """Level and suggestions for a classified image."""
    if not info.is_graph:
        return 0, ["Image found, but it's not recognized as a graph."]

    suggestions: list[str] = []
    if not info.axes_labeled:
        suggestions.append("Add axis labels to your graph.")
    if not info.has_title:
        suggestions.append("Add a title to your graph.")

    if info.graph_type is GraphType.SCATTER:
        return 8, suggestions
    if info.graph_type is GraphType.BAR:
        suggestions.append("Scatter plot is preferred for Level 7-8.")
        return 6, suggestions
    return 4, suggestions
