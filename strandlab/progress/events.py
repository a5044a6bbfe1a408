"""
Outbound events consumed by the presentation layer.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger


@dataclass(frozen=True)
class ProgressUpdated:
    """A block completed or a rubric was scored for a strand."""
    strand: int
    level: int  # block level; MAX_LEVEL for rubric scores
    score: int
    source: str = "block"  # "block" or "rubric"


@dataclass(frozen=True)
class BadgeEarned:
    """A badge flipped from unearned to earned."""
    badge: str
    strand: int


@dataclass(frozen=True)
class LevelUnlocked:
    """A completed block's average opened the next level."""
    strand: int
    level: int
    block_id: str


E = TypeVar("E")
Listener = Callable[[Any], None]


class EventEmitter:
    """Synchronous fan-out of events to subscribers, keyed by event class."""

    def __init__(self) -> None:
        self._listeners: dict[type, list[Listener]] = defaultdict(list)

    def subscribe(self, event_type: type[E], listener: Callable[[E], None]) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners[event_type].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event_type]:
                self._listeners[event_type].remove(listener)

        return unsubscribe

    def emit(self, event: Any) -> None:
        for listener in list(self._listeners[type(event)]):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener failed for {type(event).__name__}")

    def clear(self) -> None:
        self._listeners.clear()
