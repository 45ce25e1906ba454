"""
Request and response models for the tutor API.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request body for POST /api/search."""

    course_id: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1)
    top_k: int = Field(5, ge=1, le=20)


class MaterialHit(BaseModel):
    """Single ranked fragment."""

    filename: str
    page: int
    content: str
    score: float
    reference: str
    page_is_estimate: bool = False


class SearchResponse(BaseModel):
    """Response for POST /api/search."""

    query: str
    results: List[MaterialHit] = Field(default_factory=list)


class ChatContextRequest(BaseModel):
    """Request body for POST /api/chat/context."""

    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, description="Learner question")
    top_k: Optional[int] = Field(None, ge=1, le=20)


class MasteryOut(BaseModel):
    concept: str
    display_name: str
    mastery_level: int = Field(..., ge=0, le=100)
    effective_mastery: int = Field(..., ge=0, le=100, description="Level after inactivity decay")
    questions_asked: int = Field(..., ge=0)
    last_practiced: Optional[dt.datetime] = None


class ChatContextResponse(BaseModel):
    """Response for POST /api/chat/context."""

    topic: str
    topic_display_name: str
    materials: List[MaterialHit] = Field(default_factory=list)
    context: str = Field("", description="Formatted materials for the response generator")
    mastery: Optional[MasteryOut] = None


class IngestResponse(BaseModel):
    document_id: Optional[str] = None
    fragment_count: int = 0


class TopicCountOut(BaseModel):
    topic: str
    display_name: str
    question_count: int


class TimelineEntry(BaseModel):
    topic: str
    message: str
    created_at: dt.datetime


class StudentAnalyticsResponse(BaseModel):
    student_id: str
    total_questions: int
    topics_explored: int
    status: str
    last_active: Optional[dt.datetime] = None
    topic_breakdown: List[TopicCountOut] = Field(default_factory=list)
    activity_timeline: List[TimelineEntry] = Field(default_factory=list)


class CourseOverviewResponse(BaseModel):
    """Response for GET /api/analytics/course/{course_id}/overview."""

    course_id: str
    total_questions: int
    questions_this_week: int
    active_students: int


class StudentActivityOut(BaseModel):
    student_id: str
    question_count: int
    last_active: Optional[dt.datetime] = None
    status: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    status: str = "ok"
    courses_loaded: int = 0
