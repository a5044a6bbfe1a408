"""
Progress aggregation: best score per strand, badges, overall percentage.
"""
from .events import BadgeEarned, EventEmitter, LevelUnlocked, ProgressUpdated
from .store import BADGE_SLOTS, ProgressStore

__all__ = [
    "BADGE_SLOTS",
    "BadgeEarned",
    "EventEmitter",
    "LevelUnlocked",
    "ProgressStore",
    "ProgressUpdated",
]
