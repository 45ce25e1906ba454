from __future__ import annotations

import asyncio
import dataclasses
import datetime as dt
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Protocol, Tuple, runtime_checkable

from .topics import Topic

if TYPE_CHECKING:
    from coursetutor.db.stores import MasteryStore

logger = logging.getLogger(__name__)


class MasteryConflictError(Exception):
    """Raised when a mastery record changed between read and write."""


@runtime_checkable
class SupportsMasteryState(Protocol):
    """
    Minimal protocol for mastery state.

    Lets the tracker operate on ORM rows (StudentMastery) or the plain
    MasteryRecord dataclass, as long as they expose these fields.
    """

    mastery_level: int
    questions_asked: int
    last_practiced: Optional[dt.datetime]


@dataclass
class MasteryRecord:
    student_id: str
    course_id: str
    concept: Topic
    mastery_level: int = 0
    questions_asked: int = 0
    last_practiced: Optional[dt.datetime] = None
    version: int = 0

    @property
    def key(self) -> Tuple[str, str, Topic]:
        return self.student_id, self.course_id, self.concept


@dataclass
class MasteryCurveConfig:
    """Learning curve and forgetting constants."""

    early_questions: int = 5
    early_step: int = 8
    early_cap: int = 40
    mid_questions: int = 10
    mid_base: int = 40
    mid_step: int = 8
    late_base: int = 80
    late_step: int = 2
    ceiling: int = 95
    grace_days: int = 7
    short_decay_days: int = 14
    short_decay_factor: float = 0.95
    long_decay_per_day: float = 0.02
    max_decay: float = 0.3


@dataclass
class MasteryUpdate:
    """What happened during one transition, for logging and inspection."""

    previous_level: int
    days_since: int
    decay_factor: float
    decayed_previous: int
    raw_growth: int
    mastery_level: int
    questions_asked: int


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, round(value))))


def as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def days_between(earlier: Optional[dt.datetime], later: dt.datetime) -> int:
    """Whole days elapsed; 0 when there is no earlier timestamp."""
    if earlier is None:
        return 0
    delta = as_utc(later) - as_utc(earlier)
    return max(0, delta.days)


class MasteryTracker:
    """
    Question-count learning curve with inactivity decay.

    Growth is fast for the first five questions, steady up to ten, then
    slow and capped at 95 so mastery never self-certifies as perfect:

        n <= 5   -> min(40, 8n)
        n <= 10  -> 40 + 8(n - 5)
        n > 10   -> min(95, 80 + 2(n - 10))

    Decay for the time since the previous question is applied to the previous
    level; the fresh growth value then supersedes it.
    """

    def __init__(self, config: Optional[MasteryCurveConfig] = None) -> None:
        self.config = config or MasteryCurveConfig()

    def raw_growth(self, questions_asked: int) -> int:
        c = self.config
        n = max(0, int(questions_asked))
        if n <= c.early_questions:
            return min(c.early_cap, n * c.early_step)
        if n <= c.mid_questions:
            return c.mid_base + (n - c.early_questions) * c.mid_step
        return min(c.ceiling, c.late_base + (n - c.mid_questions) * c.late_step)

    def decay_factor(self, days_since: int) -> float:
        c = self.config
        if days_since <= c.grace_days:
            return 1.0
        if days_since <= c.short_decay_days:
            return c.short_decay_factor
        return 1.0 - min(c.max_decay, (days_since - c.short_decay_days) * c.long_decay_per_day)

    def effective_mastery(
        self,
        state: SupportsMasteryState,
        *,
        now: Optional[dt.datetime] = None,
    ) -> int:
        """Stored level with decay applied for the time since last practice. Does not mutate."""
        now = now or dt.datetime.now(dt.timezone.utc)
        days = days_between(state.last_practiced, now)
        return _clamp((state.mastery_level or 0) * self.decay_factor(days))

    def compute_next(
        self,
        state: SupportsMasteryState,
        *,
        now: Optional[dt.datetime] = None,
    ) -> MasteryUpdate:
        """
        Record one more question on the given state in-place.
        """
        now = now or dt.datetime.now(dt.timezone.utc)

        previous = int(state.mastery_level or 0)
        asked = int(state.questions_asked or 0) + 1
        days = days_between(state.last_practiced, now)
        factor = self.decay_factor(days)
        decayed = _clamp(previous * factor)
        raw = self.raw_growth(asked)
        level = _clamp(raw)

        state.mastery_level = level
        state.questions_asked = asked
        state.last_practiced = now

        return MasteryUpdate(
            previous_level=previous,
            days_since=days,
            decay_factor=factor,
            decayed_previous=decayed,
            raw_growth=raw,
            mastery_level=level,
            questions_asked=asked,
        )


class MasteryService:
    """
    Serialized read-modify-write of mastery records.

    Updates for the same (student, course, concept) run one at a time in this
    process, and the store's version check catches writers elsewhere. On a
    conflict the record is re-read and the update recomputed.
    """

    def __init__(
        self,
        store: "MasteryStore",
        tracker: Optional[MasteryTracker] = None,
        *,
        max_retries: int = 5,
    ) -> None:
        self.store = store
        self.tracker = tracker or MasteryTracker()
        self.max_retries = max(1, max_retries)
        self._locks: Dict[Tuple[str, str, Topic], asyncio.Lock] = {}
        # Tasks holding or waiting on each lock; the entry is dropped at zero.
        self._lock_users: Dict[Tuple[str, str, Topic], int] = {}

    async def record_question(
        self,
        student_id: str,
        course_id: str,
        concept: Topic | str,
        *,
        now: Optional[dt.datetime] = None,
    ) -> MasteryRecord:
        key = (str(student_id), str(course_id), Topic(concept))
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                return await self._update(key, now)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _update(
        self,
        key: Tuple[str, str, Topic],
        now: Optional[dt.datetime],
    ) -> MasteryRecord:
        for attempt in range(1, self.max_retries + 1):
            current = await self.store.get(*key)
            if current is None:
                state = MasteryRecord(student_id=key[0], course_id=key[1], concept=key[2])
            else:
                state = dataclasses.replace(current)
            expected_version = state.version

            update = self.tracker.compute_next(state, now=now)
            try:
                saved = await self.store.save(state, expected_version=expected_version)
            except MasteryConflictError:
                logger.warning(
                    "Mastery conflict for %s (attempt %s/%s), retrying",
                    key,
                    attempt,
                    self.max_retries,
                )
                continue
            logger.debug(
                "Mastery %s: %s -> %s after %s questions (%s days idle, decayed previous %s)",
                key,
                update.previous_level,
                update.mastery_level,
                update.questions_asked,
                update.days_since,
                update.decayed_previous,
            )
            return saved
        raise MasteryConflictError(f"Could not update mastery for {key} after {self.max_retries} attempts")

    async def snapshot(
        self,
        student_id: str,
        course_id: str,
        *,
        now: Optional[dt.datetime] = None,
    ) -> list[tuple[MasteryRecord, int]]:
        """Records for a learner in a course with their decay-adjusted level."""
        records = await self.store.list_for_student(str(student_id), str(course_id))
        return [(r, self.tracker.effective_mastery(r, now=now)) for r in records]
