"""
API routes: health, search, chat context, documents, mastery and analytics.
"""

from __future__ import annotations

import datetime as dt
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from coursetutor.generation import build_context, format_reference
from coursetutor.orchestrator import TutorService
from coursetutor.rag.retriever import RetrievalResult
from coursetutor.skills.analytics import (
    course_overview,
    student_activity,
    summarize_student,
    topic_distribution,
)
from coursetutor.skills.mastery import MasteryRecord

from .deps import get_tutor
from .models import (
    ChatContextRequest,
    ChatContextResponse,
    CourseOverviewResponse,
    HealthResponse,
    IngestResponse,
    MasteryOut,
    MaterialHit,
    SearchRequest,
    SearchResponse,
    StudentActivityOut,
    StudentAnalyticsResponse,
    TimelineEntry,
    TopicCountOut,
)

router = APIRouter(prefix="/api", tags=["api"])


def _hit(r: RetrievalResult) -> MaterialHit:
    return MaterialHit(
        filename=r.fragment.filename,
        page=r.fragment.page,
        content=r.fragment.content,
        score=round(r.score, 3),
        reference=format_reference(r.fragment),
        page_is_estimate=r.fragment.page_is_estimate,
    )


def _mastery_out(record: MasteryRecord, effective: int) -> MasteryOut:
    return MasteryOut(
        concept=record.concept.value,
        display_name=record.concept.display_name,
        mastery_level=record.mastery_level,
        effective_mastery=effective,
        questions_asked=record.questions_asked,
        last_practiced=record.last_practiced,
    )


@router.get("/health", response_model=HealthResponse)
async def health(tutor: TutorService = Depends(get_tutor)) -> HealthResponse:
    """Health check."""
    return HealthResponse(status="ok", courses_loaded=tutor.courses_loaded)


@router.post("/search", response_model=SearchResponse)
async def search(body: SearchRequest, tutor: TutorService = Depends(get_tutor)) -> SearchResponse:
    """Rank a course's materials against a query without touching learner state."""
    results = await tutor.search(body.course_id, body.query, body.top_k)
    return SearchResponse(query=body.query, results=[_hit(r) for r in results])


@router.post("/chat/context", response_model=ChatContextResponse)
async def chat_context(
    body: ChatContextRequest,
    tutor: TutorService = Depends(get_tutor),
) -> ChatContextResponse:
    """Materials and topic for one learner question; records the question and updates mastery."""
    ctx = await tutor.prepare_context(body.student_id, body.course_id, body.message, top_k=body.top_k)
    mastery = None
    if ctx.mastery is not None:
        mastery = _mastery_out(ctx.mastery, ctx.mastery.mastery_level)
    return ChatContextResponse(
        topic=ctx.topic.value,
        topic_display_name=ctx.topic.display_name,
        materials=[_hit(r) for r in ctx.results],
        context=build_context(ctx.results, max_tokens=tutor.settings.generation.context_max_tokens),
        mastery=mastery,
    )


@router.post("/courses/{course_id}/documents", response_model=IngestResponse, status_code=201)
async def ingest_document(
    course_id: str,
    request: Request,
    filename: str = Query(..., min_length=1),
    tutor: TutorService = Depends(get_tutor),
) -> IngestResponse:
    """Ingest a document sent as the raw request body."""
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty document body")
    result = await tutor.ingest(course_id, data, filename)
    return IngestResponse(document_id=result.document_id, fragment_count=result.fragment_count)


@router.delete("/courses/{course_id}/documents/{document_id}")
async def delete_document(
    course_id: str,
    document_id: str,
    tutor: TutorService = Depends(get_tutor),
) -> dict:
    if not await tutor.delete_document(course_id, document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return {"ok": True, "document_id": document_id}


@router.get("/mastery/{course_id}/{student_id}", response_model=List[MasteryOut])
async def mastery(
    course_id: str,
    student_id: str,
    tutor: TutorService = Depends(get_tutor),
) -> List[MasteryOut]:
    """Per-concept mastery for a learner, with inactivity decay applied."""
    rows = await tutor.mastery.snapshot(student_id, course_id)
    return [_mastery_out(record, effective) for record, effective in rows]


@router.get("/analytics/course/{course_id}/overview", response_model=CourseOverviewResponse)
async def course_overview_route(
    course_id: str,
    tutor: TutorService = Depends(get_tutor),
) -> CourseOverviewResponse:
    """All-time and last-7-days question counts and active learners."""
    events = await tutor.analytics.list_events(course_id)
    overview = course_overview(events, now=dt.datetime.now(dt.timezone.utc))
    return CourseOverviewResponse(
        course_id=course_id,
        total_questions=overview.total_questions,
        questions_this_week=overview.questions_this_week,
        active_students=overview.active_students,
    )


@router.get("/analytics/course/{course_id}/students", response_model=List[StudentActivityOut])
async def course_students(
    course_id: str,
    tutor: TutorService = Depends(get_tutor),
) -> List[StudentActivityOut]:
    """Learners who asked in the course, most active first."""
    events = await tutor.analytics.list_events(course_id)
    return [
        StudentActivityOut(
            student_id=row.student_id,
            question_count=row.question_count,
            last_active=row.last_active,
            status=row.status,
        )
        for row in student_activity(events, now=dt.datetime.now(dt.timezone.utc))
    ]


@router.get("/analytics/course/{course_id}/topics", response_model=List[TopicCountOut])
async def course_topics(course_id: str, tutor: TutorService = Depends(get_tutor)) -> List[TopicCountOut]:
    """Question counts per topic for a course heatmap."""
    events = await tutor.analytics.list_events(course_id)
    return [
        TopicCountOut(topic=row.topic.value, display_name=row.display_name, question_count=row.question_count)
        for row in topic_distribution(events)
    ]


@router.get("/analytics/student/{student_id}/{course_id}", response_model=StudentAnalyticsResponse)
async def student_analytics(
    student_id: str,
    course_id: str,
    tutor: TutorService = Depends(get_tutor),
) -> StudentAnalyticsResponse:
    events = await tutor.analytics.list_events(course_id, student_id=student_id)
    summary = summarize_student(student_id, events, now=dt.datetime.now(dt.timezone.utc))
    return StudentAnalyticsResponse(
        student_id=summary.student_id,
        total_questions=summary.total_questions,
        topics_explored=summary.topics_explored,
        status=summary.status,
        last_active=summary.last_active,
        topic_breakdown=[
            TopicCountOut(topic=row.topic.value, display_name=row.display_name, question_count=row.question_count)
            for row in summary.topic_breakdown
        ],
        activity_timeline=[
            TimelineEntry(topic=e.topic.display_name, message=e.message_content, created_at=e.created_at)
            for e in summary.timeline
        ],
    )
