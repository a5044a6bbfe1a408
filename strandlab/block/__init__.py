"""
Question blocks: the per-level answer/feedback/advance state machine.
"""
from .adapters import CallbackAdapter
from .machine import (
    BlockPhase,
    BlockState,
    BlockSummary,
    HintInfo,
    QuestionBlockMachine,
    next_level,
)
from .performance import Difficulty, Efficiency, PerformanceSummary, PerformanceTracker
from .strand import StrandSession

__all__ = [
    "BlockPhase",
    "BlockState",
    "BlockSummary",
    "CallbackAdapter",
    "Difficulty",
    "Efficiency",
    "HintInfo",
    "PerformanceSummary",
    "PerformanceTracker",
    "QuestionBlockMachine",
    "StrandSession",
    "next_level",
]
