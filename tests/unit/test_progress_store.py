"""
Unit tests for progress aggregation and events.
"""

import pytest

from strandlab.errors import ProgressStoreDisposedError
from strandlab.progress import (
    BadgeEarned,
    EventEmitter,
    LevelUnlocked,
    ProgressStore,
    ProgressUpdated,
)


@pytest.fixture
def store():
    return ProgressStore()


class TestRecordScore:
    def test_best_score_is_monotonic(self, store):
        store.record_score(1, 6, 6)
        store.record_score(1, 4, 3)

        assert store.best_score(1) == 6

    def test_score_rounded_half_up_and_clamped(self, store):
        assert store.record_score(1, 4, 2.5) == 3
        assert store.record_score(2, 8, 11) == 8
        assert store.record_score(3, 2, -4) == 0

    def test_unknown_strand_ignored(self, store):
        assert store.record_score(7, 4, 4) is None
        assert store.best_scores == [0, 0, 0, 0]

    def test_emits_progress_updated(self, store):
        events = []
        store.subscribe(ProgressUpdated, events.append)

        store.record_score(2, 6, 5, source="rubric")

        assert events == [ProgressUpdated(strand=2, level=6, score=5, source="rubric")]


class TestBadges:
    def test_badge_earned_at_eight(self, store):
        earned = []
        store.subscribe(BadgeEarned, earned.append)

        store.record_score(1, 8, 7)
        assert store.badges["principle_pioneer"] is False

        store.record_score(1, 8, 8)
        assert store.badges["principle_pioneer"] is True
        assert earned == [BadgeEarned(badge="principle_pioneer", strand=1)]

    def test_badge_event_fires_once(self, store):
        earned = []
        store.subscribe(BadgeEarned, earned.append)

        store.record_score(3, 8, 8)
        store.record_score(3, 8, 8)

        assert len(earned) == 1
        assert store.earned_badges == ["application_ace"]

    def test_badge_follows_own_strand(self, store):
        store.record_score(4, 8, 8)

        assert store.badges == {
            "principle_pioneer": False,
            "concept_crusader": False,
            "application_ace": False,
            "analysis_architect": True,
        }


class TestQueries:
    def test_overall_progress(self, store):
        store.record_score(1, 8, 8)
        store.record_score(2, 6, 6)
        store.record_score(3, 4, 4)

        # 18 / 32 = 56.25%
        assert store.overall_progress == 56

    def test_overall_progress_half_rounds_up(self):
        store = ProgressStore(num_strands=1)
        store.record_score(1, 2, 1)

        # 12.5%
        assert store.overall_progress == 13

    def test_strand_status(self, store):
        store.record_score(1, 8, 8)
        store.record_score(2, 2, 0)

        assert store.strand_status(1) == "completed"
        assert store.strand_status(2) == "in progress"
        assert store.strand_status(3) == "not started"

    def test_snapshot(self, store):
        store.record_score(1, 8, 8)
        snapshot = store.snapshot()

        assert snapshot["strand_scores"] == [8, 0, 0, 0]
        assert snapshot["strand_status"][0] == "completed"
        assert snapshot["badges"]["principle_pioneer"] is True
        assert snapshot["overall_progress"] == 25

    def test_reset_clears_everything(self, store):
        store.record_score(1, 8, 8)
        store.reset()

        assert store.best_scores == [0, 0, 0, 0]
        assert store.earned_badges == []
        assert store.strand_status(1) == "not started"


class TestLifecycle:
    def test_disposed_store_rejects_updates(self, store):
        store.dispose()

        assert store.disposed is True
        with pytest.raises(ProgressStoreDisposedError):
            store.record_score(1, 2, 2)

    def test_dispose_drops_listeners(self):
        emitter = EventEmitter()
        store = ProgressStore(emitter=emitter)
        seen = []
        store.subscribe(ProgressUpdated, seen.append)

        store.dispose()
        emitter.emit(ProgressUpdated(strand=1, level=2, score=2))

        assert seen == []


class TestEventEmitter:
    def test_unsubscribe(self):
        emitter = EventEmitter()
        seen = []
        unsubscribe = emitter.subscribe(LevelUnlocked, seen.append)

        unsubscribe()
        emitter.emit(LevelUnlocked(strand=1, level=4, block_id="b"))

        assert seen == []

    def test_failing_listener_does_not_stop_others(self):
        emitter = EventEmitter()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        emitter.subscribe(BadgeEarned, broken)
        emitter.subscribe(BadgeEarned, seen.append)
        emitter.emit(BadgeEarned(badge="principle_pioneer", strand=1))

        assert len(seen) == 1

    def test_events_routed_by_type(self):
        emitter = EventEmitter()
        seen = []
        emitter.subscribe(BadgeEarned, seen.append)

        emitter.emit(ProgressUpdated(strand=1, level=2, score=2))

        assert seen == []
