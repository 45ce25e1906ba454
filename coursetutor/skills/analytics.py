from __future__ import annotations

import datetime as dt
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .mastery import as_utc, days_between
from .topics import Topic, all_topics, format_topic_name

EVENT_QUESTION = "question"


@dataclass
class AnalyticsEvent:
    """One learner question, as written to the analytics log."""

    student_id: str
    course_id: str
    topic: Topic
    message_content: str
    created_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    event_type: str = EVENT_QUESTION


@dataclass
class TopicCount:
    topic: Topic
    display_name: str
    question_count: int


@dataclass
class StudentSummary:
    student_id: str
    total_questions: int
    topics_explored: int
    topic_breakdown: List[TopicCount]
    timeline: List[AnalyticsEvent]
    last_active: Optional[dt.datetime]
    status: str


@dataclass
class CourseOverview:
    total_questions: int
    questions_this_week: int
    # Distinct learners with a question in the last week.
    active_students: int


@dataclass
class StudentActivity:
    student_id: str
    question_count: int
    last_active: Optional[dt.datetime]
    status: str


def _questions(events: Iterable[AnalyticsEvent]) -> List[AnalyticsEvent]:
    return [e for e in events if e.event_type == EVENT_QUESTION]


def topic_distribution(events: Iterable[AnalyticsEvent]) -> List[TopicCount]:
    """Question count per named topic, every topic included, most asked first."""
    counts = Counter(e.topic for e in _questions(events))
    rows = [
        TopicCount(topic=t, display_name=format_topic_name(t), question_count=counts.get(t, 0))
        for t in all_topics()
    ]
    rows.sort(key=lambda r: r.question_count, reverse=True)
    return rows


def activity_status(last_active: Optional[dt.datetime], now: Optional[dt.datetime] = None) -> str:
    """active within 2 days, moderate within 7, inactive otherwise."""
    if last_active is None:
        return "inactive"
    now = now or dt.datetime.now(dt.timezone.utc)
    days = days_between(last_active, now)
    if days <= 2:
        return "active"
    if days <= 7:
        return "moderate"
    return "inactive"


def summarize_student(
    student_id: str,
    events: Iterable[AnalyticsEvent],
    *,
    now: Optional[dt.datetime] = None,
    timeline_limit: int = 20,
) -> StudentSummary:
    questions = sorted(_questions(events), key=lambda e: e.created_at, reverse=True)
    counts = Counter(e.topic for e in questions)
    breakdown = [
        TopicCount(topic=t, display_name=format_topic_name(t), question_count=n)
        for t, n in counts.most_common()
    ]
    last_active = questions[0].created_at if questions else None
    return StudentSummary(
        student_id=student_id,
        total_questions=len(questions),
        topics_explored=len(counts),
        topic_breakdown=breakdown,
        timeline=questions[:timeline_limit],
        last_active=last_active,
        status=activity_status(last_active, now),
    )


def course_overview(
    events: Iterable[AnalyticsEvent],
    *,
    now: Optional[dt.datetime] = None,
    window_days: int = 7,
) -> CourseOverview:
    """All-time question count plus questions and distinct askers in the last ``window_days``."""
    now = now or dt.datetime.now(dt.timezone.utc)
    since = as_utc(now) - dt.timedelta(days=window_days)
    questions = _questions(events)
    recent = [e for e in questions if as_utc(e.created_at) >= since]
    return CourseOverview(
        total_questions=len(questions),
        questions_this_week=len(recent),
        active_students=len({e.student_id for e in recent}),
    )


def student_activity(
    events: Iterable[AnalyticsEvent],
    *,
    now: Optional[dt.datetime] = None,
) -> List[StudentActivity]:
    """One row per learner who asked in the course, most questions first."""
    counts: Dict[str, int] = {}
    last_seen: Dict[str, dt.datetime] = {}
    for e in _questions(events):
        counts[e.student_id] = counts.get(e.student_id, 0) + 1
        if e.student_id not in last_seen or as_utc(e.created_at) > as_utc(last_seen[e.student_id]):
            last_seen[e.student_id] = e.created_at

    rows = [
        StudentActivity(
            student_id=student_id,
            question_count=count,
            last_active=last_seen[student_id],
            status=activity_status(last_seen[student_id], now),
        )
        for student_id, count in counts.items()
    ]
    rows.sort(key=lambda r: (-r.question_count, r.student_id))
    return rows
