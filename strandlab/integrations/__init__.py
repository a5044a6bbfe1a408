"""
External integrations for the assessment engine.

Modules:
- grading_client: optional HTTP short-answer grader
"""
from .grading_client import GradeRequest, GradeResult, GradingClient, ShortAnswerGrader

__all__ = ["GradeRequest", "GradeResult", "GradingClient", "ShortAnswerGrader"]
