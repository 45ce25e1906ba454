"""
Persistence protocols for the tutoring pipeline and their SQLAlchemy implementations.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursetutor.rag.index import Fragment
from coursetutor.skills.analytics import AnalyticsEvent
from coursetutor.skills.mastery import MasteryConflictError, MasteryRecord
from coursetutor.skills.topics import Topic

from .models import AnalyticsEventRow, Document, FragmentRow, StudentMastery

logger = logging.getLogger(__name__)


class CorpusStore(Protocol):
    async def add_document(
        self,
        course_id: str,
        filename: str,
        fragments: Sequence[Fragment],
        *,
        page_count: Optional[int] = None,
    ) -> str:
        """Store all fragments of one document atomically; returns the document id."""
        ...

    async def fetch_course_fragments(self, course_id: str) -> List[Fragment]:
        ...

    async def delete_document(self, course_id: str, document_id: str) -> bool:
        """Delete a document and its fragments; False if the course does not own it."""
        ...


class MasteryStore(Protocol):
    async def get(self, student_id: str, course_id: str, concept: Topic) -> Optional[MasteryRecord]:
        ...

    async def save(self, record: MasteryRecord, *, expected_version: int) -> MasteryRecord:
        """Persist ``record`` if the stored version still equals ``expected_version``."""
        ...

    async def list_for_student(self, student_id: str, course_id: str) -> List[MasteryRecord]:
        ...


class AnalyticsStore(Protocol):
    async def record(self, event: AnalyticsEvent) -> None:
        ...

    async def list_events(
        self,
        course_id: str,
        *,
        student_id: Optional[str] = None,
    ) -> List[AnalyticsEvent]:
        ...


def _to_fragment(row: FragmentRow) -> Fragment:
    return Fragment(
        content=row.content,
        filename=row.filename,
        page=row.page,
        start_char=row.start_char,
        page_is_estimate=row.page_is_estimate,
        document_id=str(row.document_id),
    )


def _to_record(row: StudentMastery) -> MasteryRecord:
    return MasteryRecord(
        student_id=row.student_id,
        course_id=row.course_id,
        concept=Topic(row.concept),
        mastery_level=row.mastery_level,
        questions_asked=row.questions_asked,
        last_practiced=row.last_practiced,
        version=row.version,
    )


class SQLCorpusStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def add_document(
        self,
        course_id: str,
        filename: str,
        fragments: Sequence[Fragment],
        *,
        page_count: Optional[int] = None,
    ) -> str:
        async with self.session_factory() as db:
            async with db.begin():
                doc = Document(course_id=course_id, filename=filename, page_count=page_count)
                db.add(doc)
                await db.flush()
                db.add_all(
                    FragmentRow(
                        course_id=course_id,
                        document_id=doc.id,
                        chunk_index=i,
                        content=f.content,
                        filename=f.filename,
                        page=f.page,
                        start_char=f.start_char,
                        page_is_estimate=f.page_is_estimate,
                    )
                    for i, f in enumerate(fragments)
                )
            return str(doc.id)

    async def fetch_course_fragments(self, course_id: str) -> List[Fragment]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(FragmentRow)
                .where(FragmentRow.course_id == course_id)
                .order_by(FragmentRow.document_id, FragmentRow.chunk_index)
            )
            return [_to_fragment(row) for row in result.scalars().all()]

    async def delete_document(self, course_id: str, document_id: str) -> bool:
        if not str(document_id).isdigit():
            return False
        doc_id = int(document_id)
        async with self.session_factory() as db:
            async with db.begin():
                owned = await db.scalar(
                    select(Document.id).where(
                        and_(Document.id == doc_id, Document.course_id == course_id)
                    )
                )
                if owned is None:
                    return False
                await db.execute(delete(FragmentRow).where(FragmentRow.document_id == doc_id))
                await db.execute(delete(Document).where(Document.id == doc_id))
            return True


class SQLMasteryStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get(self, student_id: str, course_id: str, concept: Topic) -> Optional[MasteryRecord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(StudentMastery).where(
                    and_(
                        StudentMastery.student_id == student_id,
                        StudentMastery.course_id == course_id,
                        StudentMastery.concept == Topic(concept).value,
                    )
                )
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row is not None else None

    async def save(self, record: MasteryRecord, *, expected_version: int) -> MasteryRecord:
        new_version = expected_version + 1
        async with self.session_factory() as db:
            try:
                async with db.begin():
                    if expected_version == 0:
                        db.add(
                            StudentMastery(
                                student_id=record.student_id,
                                course_id=record.course_id,
                                concept=record.concept.value,
                                mastery_level=record.mastery_level,
                                questions_asked=record.questions_asked,
                                last_practiced=record.last_practiced,
                                version=new_version,
                            )
                        )
                    else:
                        result = await db.execute(
                            update(StudentMastery)
                            .where(
                                and_(
                                    StudentMastery.student_id == record.student_id,
                                    StudentMastery.course_id == record.course_id,
                                    StudentMastery.concept == record.concept.value,
                                    StudentMastery.version == expected_version,
                                )
                            )
                            .values(
                                mastery_level=record.mastery_level,
                                questions_asked=record.questions_asked,
                                last_practiced=record.last_practiced,
                                version=new_version,
                            )
                        )
                        if result.rowcount == 0:
                            raise MasteryConflictError(
                                f"mastery record {record.key} is no longer at version {expected_version}"
                            )
            except IntegrityError as e:
                raise MasteryConflictError(f"mastery record {record.key} was created concurrently") from e
        record.version = new_version
        return record

    async def list_for_student(self, student_id: str, course_id: str) -> List[MasteryRecord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(StudentMastery)
                .where(
                    and_(
                        StudentMastery.student_id == student_id,
                        StudentMastery.course_id == course_id,
                    )
                )
                .order_by(StudentMastery.concept)
            )
            return [_to_record(row) for row in result.scalars().all()]


class SQLAnalyticsStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def record(self, event: AnalyticsEvent) -> None:
        async with self.session_factory() as db:
            async with db.begin():
                db.add(
                    AnalyticsEventRow(
                        student_id=event.student_id,
                        course_id=event.course_id,
                        event_type=event.event_type,
                        topic=Topic(event.topic).value,
                        message_content=event.message_content,
                        created_at=event.created_at,
                    )
                )

    async def list_events(
        self,
        course_id: str,
        *,
        student_id: Optional[str] = None,
    ) -> List[AnalyticsEvent]:
        conditions = [AnalyticsEventRow.course_id == course_id]
        if student_id is not None:
            conditions.append(AnalyticsEventRow.student_id == student_id)
        async with self.session_factory() as db:
            result = await db.execute(
                select(AnalyticsEventRow)
                .where(and_(*conditions))
                .order_by(AnalyticsEventRow.created_at)
            )
            events: List[AnalyticsEvent] = []
            for row in result.scalars().all():
                try:
                    topic = Topic(row.topic or Topic.GENERAL.value)
                except ValueError:
                    logger.warning("Skipping analytics event %s with unknown topic %r", row.id, row.topic)
                    continue
                events.append(
                    AnalyticsEvent(
                        student_id=row.student_id,
                        course_id=row.course_id,
                        topic=topic,
                        message_content=row.message_content or "",
                        created_at=row.created_at,
                        event_type=row.event_type,
                    )
                )
            return events
