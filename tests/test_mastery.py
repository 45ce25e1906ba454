"""
Tests for the mastery learning curve, decay and serialized updates.
"""

from __future__ import annotations

import asyncio
import datetime as dt

import pytest

from coursetutor.db.memory import InMemoryMasteryStore
from coursetutor.db.models import StudentMastery
from coursetutor.skills.mastery import (
    MasteryConflictError,
    MasteryCurveConfig,
    MasteryRecord,
    MasteryService,
    MasteryTracker,
    days_between,
)
from coursetutor.skills.topics import Topic

T0 = dt.datetime(2024, 3, 1, 9, 0, tzinfo=dt.timezone.utc)


def _record(**kwargs) -> MasteryRecord:
    return MasteryRecord(student_id="s1", course_id="c1", concept=Topic.LOOPS, **kwargs)


@pytest.mark.parametrize(
    "asked,expected",
    [(0, 0), (1, 8), (5, 40), (6, 48), (10, 80), (11, 82), (17, 94), (20, 95), (100, 95)],
)
def test_raw_growth(asked: int, expected: int):
    assert MasteryTracker().raw_growth(asked) == expected


@pytest.mark.parametrize(
    "days,expected",
    [(0, 1.0), (7, 1.0), (8, 0.95), (14, 0.95), (15, 0.98), (20, 0.88), (29, 0.7), (60, 0.7)],
)
def test_decay_factor(days: int, expected: float):
    assert MasteryTracker().decay_factor(days) == pytest.approx(expected)


def test_learning_sequence_with_inactivity():
    tracker = MasteryTracker()
    state = _record()

    first = tracker.compute_next(state, now=T0)
    assert first.mastery_level == 8
    assert state.questions_asked == 1
    assert state.last_practiced == T0

    for i in range(4):
        tracker.compute_next(state, now=T0 + dt.timedelta(hours=i + 1))
    assert state.mastery_level == 40

    tracker.compute_next(state, now=T0 + dt.timedelta(days=1))
    assert state.mastery_level == 48

    update = tracker.compute_next(state, now=T0 + dt.timedelta(days=21))
    assert update.days_since == 20
    assert update.decay_factor == pytest.approx(0.88)
    assert update.decayed_previous == 42
    assert update.mastery_level == 56
    assert state.questions_asked == 7


def test_effective_mastery_applies_decay_without_mutating():
    tracker = MasteryTracker()
    state = _record(mastery_level=48, questions_asked=6, last_practiced=T0)

    assert tracker.effective_mastery(state, now=T0 + dt.timedelta(days=20)) == 42
    assert tracker.effective_mastery(state, now=T0 + dt.timedelta(days=3)) == 48
    assert state.mastery_level == 48


def test_mastery_is_clamped():
    tracker = MasteryTracker(MasteryCurveConfig(early_step=50, early_cap=500))
    state = _record()

    for _ in range(3):
        update = tracker.compute_next(state, now=T0)

    assert update.raw_growth == 150
    assert state.mastery_level == 100


def test_naive_timestamps_are_treated_as_utc():
    naive = dt.datetime(2024, 3, 1, 9, 0)

    assert days_between(naive, T0 + dt.timedelta(days=9)) == 9
    assert days_between(None, T0) == 0
    assert days_between(T0 + dt.timedelta(days=1), T0) == 0


def test_tracker_works_on_orm_rows():
    row = StudentMastery(
        student_id="s1",
        course_id="c1",
        concept="loops",
        mastery_level=0,
        questions_asked=0,
        last_practiced=None,
    )

    MasteryTracker().compute_next(row, now=T0)

    assert row.mastery_level == 8
    assert row.questions_asked == 1


def test_service_records_questions():
    async def run() -> MasteryRecord:
        service = MasteryService(InMemoryMasteryStore())
        record = None
        for _ in range(5):
            record = await service.record_question("s1", "c1", "loops", now=T0)
        return record

    record = asyncio.run(run())

    assert record.mastery_level == 40
    assert record.questions_asked == 5
    assert record.version == 5
    assert record.concept is Topic.LOOPS


def test_concurrent_updates_are_not_lost():
    async def run() -> MasteryRecord:
        store = InMemoryMasteryStore()
        service = MasteryService(store)
        await asyncio.gather(
            *(service.record_question("s1", "c1", Topic.LOOPS, now=T0) for _ in range(10))
        )
        return await store.get("s1", "c1", Topic.LOOPS)

    record = asyncio.run(run())

    assert record.questions_asked == 10
    assert record.mastery_level == 80


class RacingStore(InMemoryMasteryStore):
    """Lets another writer slip in before the first ``races`` saves."""

    def __init__(self, races: int) -> None:
        super().__init__()
        self.races = races
        self.attempts = 0

    async def save(self, record: MasteryRecord, *, expected_version: int) -> MasteryRecord:
        self.attempts += 1
        if self.races > 0:
            self.races -= 1
            current = await self.get(*record.key)
            other = current or MasteryRecord(*record.key)
            MasteryTracker().compute_next(other, now=T0)
            await super().save(other, expected_version=other.version)
        return await super().save(record, expected_version=expected_version)


def test_conflict_is_retried_and_both_updates_survive():
    async def run():
        store = RacingStore(races=1)
        record = await MasteryService(store).record_question("s1", "c1", Topic.LOOPS, now=T0)
        return store, record

    store, record = asyncio.run(run())

    assert store.attempts == 2
    assert record.questions_asked == 2
    assert record.mastery_level == 16


def test_conflict_retries_are_bounded():
    async def run():
        store = RacingStore(races=10)
        await MasteryService(store, max_retries=3).record_question("s1", "c1", Topic.LOOPS, now=T0)

    with pytest.raises(MasteryConflictError):
        asyncio.run(run())


def test_snapshot_reports_decayed_levels():
    async def run():
        service = MasteryService(InMemoryMasteryStore())
        for _ in range(6):
            await service.record_question("s1", "c1", Topic.LOOPS, now=T0)
        await service.record_question("s1", "c1", Topic.PLOTTING, now=T0)
        await service.record_question("s2", "c1", Topic.LOOPS, now=T0)
        return await service.snapshot("s1", "c1", now=T0 + dt.timedelta(days=20))

    snapshot = asyncio.run(run())

    assert [(r.concept, r.mastery_level, level) for r, level in snapshot] == [
        (Topic.LOOPS, 48, 42),
        (Topic.PLOTTING, 8, 7),
    ]


class YieldingStore(InMemoryMasteryStore):
    """Suspends on every read and write, and counts version conflicts."""

    def __init__(self) -> None:
        super().__init__()
        self.conflicts = 0

    async def get(self, student_id, course_id, concept):
        await asyncio.sleep(0)
        return await super().get(student_id, course_id, concept)

    async def save(self, record: MasteryRecord, *, expected_version: int) -> MasteryRecord:
        await asyncio.sleep(0)
        try:
            return await super().save(record, expected_version=expected_version)
        except MasteryConflictError:
            self.conflicts += 1
            raise


def test_same_key_updates_are_serialized():
    async def run():
        store = YieldingStore()
        service = MasteryService(store)
        await asyncio.gather(
            *(service.record_question("s1", "c1", Topic.LOOPS, now=T0) for _ in range(10))
        )
        return store, await store.get("s1", "c1", Topic.LOOPS)

    store, record = asyncio.run(run())

    assert store.conflicts == 0
    assert record.questions_asked == 10
    assert record.mastery_level == 80


def test_different_keys_update_independently():
    async def run():
        store = YieldingStore()
        service = MasteryService(store)
        await asyncio.gather(
            *(
                service.record_question("s1", "c1", topic, now=T0)
                for topic in (Topic.LOOPS, Topic.PLOTTING, Topic.LOOPS, Topic.PLOTTING)
            )
        )
        return store, await service.snapshot("s1", "c1", now=T0)

    store, snapshot = asyncio.run(run())

    assert store.conflicts == 0
    assert [(r.concept, r.questions_asked) for r, _ in snapshot] == [
        (Topic.LOOPS, 2),
        (Topic.PLOTTING, 2),
    ]


def test_locks_are_released_after_use():
    async def run():
        service = MasteryService(YieldingStore())
        await asyncio.gather(
            *(service.record_question(f"s{i % 3}", "c1", Topic.LOOPS, now=T0) for i in range(9))
        )
        return service

    service = asyncio.run(run())

    assert service._locks == {}
    assert service._lock_users == {}


def test_locks_are_released_after_failure():
    async def run():
        service = MasteryService(RacingStore(races=10), max_retries=2)
        with pytest.raises(MasteryConflictError):
            await service.record_question("s1", "c1", Topic.LOOPS, now=T0)
        return service

    service = asyncio.run(run())

    assert service._locks == {}
