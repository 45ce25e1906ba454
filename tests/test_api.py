"""
Tests for the tutor API routes.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from coursetutor.api.main import app
from coursetutor.db.memory import InMemoryAnalyticsStore, InMemoryCorpusStore, InMemoryMasteryStore
from coursetutor.orchestrator import TutorService

LESSON = (
    "Loops repeat a block of statements. A for loop runs once per element, "
    "while a while loop checks its condition before every pass. "
) * 10


@pytest.fixture
def client():
    app.state.tutor = TutorService(InMemoryCorpusStore(), InMemoryMasteryStore(), InMemoryAnalyticsStore())
    with TestClient(app) as c:
        yield c
    app.state.tutor = None


def _ingest(client: TestClient, course_id: str = "c1") -> dict:
    r = client.post(
        f"/api/courses/{course_id}/documents",
        params={"filename": "lesson.txt"},
        content=LESSON.encode("utf-8"),
    )
    assert r.status_code == 201
    return r.json()


def test_health(client: TestClient):
    r = client.get("/api/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert isinstance(data["courses_loaded"], int)


def test_health_without_service():
    app.state.tutor = None
    r = TestClient(app).get("/api/health")
    assert r.status_code == 503


def test_search_requires_body(client: TestClient):
    r = client.post("/api/search", json={})
    assert r.status_code == 422


def test_ingest_and_search(client: TestClient):
    doc = _ingest(client)
    assert doc["fragment_count"] > 0

    r = client.post("/api/search", json={"course_id": "c1", "query": "for loop", "top_k": 3})
    assert r.status_code == 200
    data = r.json()
    assert data["query"] == "for loop"
    assert 0 < len(data["results"]) <= 3
    hit = data["results"][0]
    assert hit["filename"] == "lesson.txt"
    assert hit["page_is_estimate"] is True
    assert hit["reference"] == 'Reference: "lesson.txt" - Page 1 (estimated)'


def test_ingest_unreadable_document(client: TestClient):
    r = client.post("/api/courses/c1/documents", params={"filename": "x.docx"}, content=b"\x00\x01")
    assert r.status_code == 201
    assert r.json() == {"document_id": None, "fragment_count": 0}


def test_ingest_empty_body(client: TestClient):
    r = client.post("/api/courses/c1/documents", params={"filename": "x.txt"}, content=b"")
    assert r.status_code == 400


def test_delete_document(client: TestClient):
    doc = _ingest(client)

    r = client.delete(f"/api/courses/c1/documents/{doc['document_id']}")
    assert r.status_code == 200
    assert client.delete(f"/api/courses/c1/documents/{doc['document_id']}").status_code == 404


def test_chat_context_updates_mastery_and_analytics(client: TestClient):
    _ingest(client)

    r = client.post(
        "/api/chat/context",
        json={"student_id": "s1", "course_id": "c1", "message": "How do I use a for loop to iterate?"},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["topic"] == "loops"
    assert data["topic_display_name"] == "Loops"
    assert data["materials"]
    assert data["context"].startswith("[RELEVANT COURSE MATERIALS FROM PDFs]")
    assert data["mastery"]["mastery_level"] == 8

    r = client.get("/api/mastery/c1/s1")
    assert r.status_code == 200
    rows = r.json()
    assert [(m["concept"], m["questions_asked"], m["effective_mastery"]) for m in rows] == [("loops", 1, 8)]

    r = client.get("/api/analytics/course/c1/topics")
    assert r.status_code == 200
    topics = r.json()
    assert len(topics) == 14
    assert topics[0] == {"topic": "loops", "display_name": "Loops", "question_count": 1}

    r = client.get("/api/analytics/student/s1/c1")
    assert r.status_code == 200
    summary = r.json()
    assert summary["total_questions"] == 1
    assert summary["status"] == "active"
    assert summary["activity_timeline"][0]["topic"] == "Loops"


def test_chat_context_requires_fields(client: TestClient):
    r = client.post("/api/chat/context", json={"student_id": "s1", "message": "hi"})
    assert r.status_code == 422


def test_delete_document_from_another_course(client: TestClient):
    doc = _ingest(client, course_id="b")

    r = client.delete(f"/api/courses/a/documents/{doc['document_id']}")
    assert r.status_code == 404

    r = client.post("/api/search", json={"course_id": "b", "query": "loop"})
    assert r.status_code == 200
    assert r.json()["results"]


def test_course_overview_and_students(client: TestClient):
    _ingest(client)
    for student, message in [
        ("s1", "How do I use a for loop?"),
        ("s1", "How do I plot a figure?"),
        ("s2", "What is a while loop?"),
    ]:
        r = client.post("/api/chat/context", json={"student_id": student, "course_id": "c1", "message": message})
        assert r.status_code == 200

    r = client.get("/api/analytics/course/c1/overview")
    assert r.status_code == 200
    assert r.json() == {
        "course_id": "c1",
        "total_questions": 3,
        "questions_this_week": 3,
        "active_students": 2,
    }

    r = client.get("/api/analytics/course/c1/students")
    assert r.status_code == 200
    rows = r.json()
    assert [(row["student_id"], row["question_count"], row["status"]) for row in rows] == [
        ("s1", 2, "active"),
        ("s2", 1, "active"),
    ]
    assert rows[0]["last_active"] is not None


def test_course_overview_empty_course(client: TestClient):
    r = client.get("/api/analytics/course/nobody/overview")
    assert r.status_code == 200
    assert r.json()["total_questions"] == 0
    assert client.get("/api/analytics/course/nobody/students").json() == []
