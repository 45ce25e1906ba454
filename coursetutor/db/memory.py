"""
In-process stores for local runs and tests.
"""

from __future__ import annotations

import dataclasses
import itertools
from typing import Dict, List, Optional, Sequence, Tuple

from coursetutor.rag.index import Fragment
from coursetutor.skills.analytics import AnalyticsEvent
from coursetutor.skills.mastery import MasteryConflictError, MasteryRecord
from coursetutor.skills.topics import Topic


class InMemoryCorpusStore:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        # document_id -> (course_id, fragments)
        self._documents: Dict[str, Tuple[str, List[Fragment]]] = {}

    async def add_document(
        self,
        course_id: str,
        filename: str,
        fragments: Sequence[Fragment],
        *,
        page_count: Optional[int] = None,
    ) -> str:
        document_id = str(next(self._ids))
        stored = [dataclasses.replace(f, document_id=document_id) for f in fragments]
        self._documents[document_id] = (course_id, stored)
        return document_id

    async def fetch_course_fragments(self, course_id: str) -> List[Fragment]:
        out: List[Fragment] = []
        for owner, fragments in self._documents.values():
            if owner == course_id:
                out.extend(fragments)
        return out

    async def delete_document(self, course_id: str, document_id: str) -> bool:
        owner = self._documents.get(str(document_id))
        if owner is None or owner[0] != course_id:
            return False
        del self._documents[str(document_id)]
        return True


class InMemoryMasteryStore:
    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str, Topic], MasteryRecord] = {}

    async def get(self, student_id: str, course_id: str, concept: Topic) -> Optional[MasteryRecord]:
        record = self._records.get((student_id, course_id, Topic(concept)))
        return dataclasses.replace(record) if record is not None else None

    async def save(self, record: MasteryRecord, *, expected_version: int) -> MasteryRecord:
        current = self._records.get(record.key)
        current_version = current.version if current is not None else 0
        if current_version != expected_version:
            raise MasteryConflictError(
                f"mastery record {record.key} is at version {current_version}, expected {expected_version}"
            )
        saved = dataclasses.replace(record, version=expected_version + 1)
        self._records[record.key] = saved
        return dataclasses.replace(saved)

    async def list_for_student(self, student_id: str, course_id: str) -> List[MasteryRecord]:
        rows = [
            dataclasses.replace(r)
            for (s, c, _), r in self._records.items()
            if s == student_id and c == course_id
        ]
        rows.sort(key=lambda r: r.concept.value)
        return rows


class InMemoryAnalyticsStore:
    def __init__(self) -> None:
        self.events: List[AnalyticsEvent] = []

    async def record(self, event: AnalyticsEvent) -> None:
        self.events.append(event)

    async def list_events(
        self,
        course_id: str,
        *,
        student_id: Optional[str] = None,
    ) -> List[AnalyticsEvent]:
        return [
            e
            for e in self.events
            if e.course_id == course_id
            and (student_id is None or e.student_id == student_id)
        ]
