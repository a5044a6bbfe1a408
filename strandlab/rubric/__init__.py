"""
Rubric grading of written work (tables, graphs and explanations).
"""
from .evaluator import NO_RUBRIC_SUGGESTION, MatchedEntry, RubricEvaluator, RubricResult, evaluate_text
from .image_classifier import FilenameGraphClassifier, GraphClassifier, GraphInfo, GraphType
from .models import RubricBook, RubricEntry, StrandRubric

__all__ = [
    "FilenameGraphClassifier",
    "GraphClassifier",
    "GraphInfo",
    "GraphType",
    "MatchedEntry",
    "NO_RUBRIC_SUGGESTION",
    "RubricBook",
    "RubricEntry",
    "RubricEvaluator",
    "RubricResult",
    "StrandRubric",
    "evaluate_text",
]
