"""
Tutor service: the question-answering flow over one course.

question -> keywords -> ranked, page-diverse fragments -> topic label
         -> analytics event -> mastery update
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from coursetutor.config import TutorSettings
from coursetutor.db.stores import AnalyticsStore, CorpusStore, MasteryStore
from coursetutor.generation import (
    GeneratedReply,
    ResponseGenerator,
    build_prompt,
    extract_citations,
)
from coursetutor.rag.ingest import ingest_document
from coursetutor.rag.retriever import RetrievalResult
from coursetutor.rag.search import CourseSearcher
from coursetutor.skills.analytics import AnalyticsEvent
from coursetutor.skills.mastery import MasteryRecord, MasteryService, MasteryTracker
from coursetutor.skills.topics import Topic, TopicClassifier

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    document_id: Optional[str]
    fragment_count: int


@dataclass
class TutorContext:
    """What the response generator and dashboard receive for one question."""

    question: str
    topic: Topic
    results: List[RetrievalResult] = field(default_factory=list)
    mastery: Optional[MasteryRecord] = None

    @property
    def has_materials(self) -> bool:
        return bool(self.results)


class TutorService:
    def __init__(
        self,
        corpus: CorpusStore,
        mastery_store: MasteryStore,
        analytics: AnalyticsStore,
        settings: Optional[TutorSettings] = None,
    ) -> None:
        self.settings = settings or TutorSettings()
        self.corpus = corpus
        self.analytics = analytics
        self.classifier = TopicClassifier(self.settings.topic_table)
        self.tracker = MasteryTracker(self.settings.mastery)
        self.mastery = MasteryService(
            mastery_store,
            self.tracker,
            max_retries=self.settings.mastery_max_retries,
        )
        self._searchers: Dict[str, CourseSearcher] = {}
        # Bumped on every corpus change; a searcher built from an older
        # generation is returned but not cached.
        self._generations: Dict[str, int] = defaultdict(int)

    def invalidate(self, course_id: str) -> None:
        course_id = str(course_id)
        self._generations[course_id] += 1
        self._searchers.pop(course_id, None)

    def clear_cache(self) -> None:
        for course_id in list(self._generations):
            self._generations[course_id] += 1
        self._searchers.clear()

    @property
    def courses_loaded(self) -> int:
        return len(self._searchers)

    async def searcher_for(self, course_id: str) -> CourseSearcher:
        """Searcher over the course's current corpus, built once per corpus load."""
        course_id = str(course_id)
        searcher = self._searchers.get(course_id)
        if searcher is None:
            generation = self._generations[course_id]
            fragments = await self.corpus.fetch_course_fragments(course_id)
            searcher = await asyncio.to_thread(
                CourseSearcher.from_fragments,
                fragments,
                config=self.settings.retrieval,
                synonyms=self.settings.synonyms,
            )
            logger.info("Loaded %s fragments for course %s", len(fragments), course_id)
            if self._generations[course_id] == generation:
                self._searchers[course_id] = searcher
            else:
                logger.debug("Corpus for course %s changed during load; not caching", course_id)
        return searcher

    async def ingest(self, course_id: str, data: bytes, filename: str) -> IngestResult:
        """Extract and chunk a document, then store all of its fragments or none."""
        doc = await asyncio.to_thread(
            ingest_document, data, filename, self.settings.retrieval.chunking
        )
        if not doc.fragments:
            logger.warning("No fragments ingested from %s for course %s", filename, course_id)
            return IngestResult(document_id=None, fragment_count=0)

        document_id = await self.corpus.add_document(
            str(course_id), filename, doc.fragments, page_count=doc.page_count
        )
        self.invalidate(course_id)
        return IngestResult(document_id=document_id, fragment_count=len(doc.fragments))

    async def delete_document(self, course_id: str, document_id: str) -> bool:
        """Delete one of the course's documents; False if the course does not own it."""
        deleted = await self.corpus.delete_document(str(course_id), str(document_id))
        if deleted:
            self.invalidate(course_id)
        return deleted

    async def search(
        self,
        course_id: str,
        question: str,
        top_k: Optional[int] = None,
    ) -> List[RetrievalResult]:
        searcher = await self.searcher_for(course_id)
        return await asyncio.to_thread(searcher.search, question, top_k)

    async def prepare_context(
        self,
        student_id: str,
        course_id: str,
        question: str,
        *,
        top_k: Optional[int] = None,
        now: Optional[dt.datetime] = None,
    ) -> TutorContext:
        """Rank materials, label the topic, log the question and update mastery."""
        now = now or dt.datetime.now(dt.timezone.utc)
        results = await self.search(course_id, question, top_k)
        if not results:
            logger.info("No course materials matched %r in course %s", question, course_id)
        topic = self.classifier.classify(question)

        await self.analytics.record(
            AnalyticsEvent(
                student_id=str(student_id),
                course_id=str(course_id),
                topic=topic,
                message_content=question,
                created_at=now,
            )
        )
        record = await self.mastery.record_question(student_id, course_id, topic, now=now)
        return TutorContext(question=question, topic=topic, results=results, mastery=record)

    async def respond(
        self,
        student_id: str,
        course_id: str,
        question: str,
        generator: ResponseGenerator,
        *,
        history: Sequence[dict] = (),
        now: Optional[dt.datetime] = None,
    ) -> tuple[TutorContext, GeneratedReply]:
        """Prepare context and ask the external generator for a reply."""
        ctx = await self.prepare_context(student_id, course_id, question, now=now)
        cfg = self.settings.generation
        prompt = build_prompt(question, ctx.topic, ctx.results, cfg)
        answer = await asyncio.to_thread(generator.generate, prompt, list(history), cfg)
        citations = extract_citations(answer or "", ctx.results)
        ungrounded = [c for c in citations if not c.grounded]
        if ungrounded:
            logger.warning(
                "Reply cites %s page(s) not in the supplied materials: %s",
                len(ungrounded),
                ", ".join(f"{c.filename} p.{c.page}" for c in ungrounded),
            )
        return ctx, GeneratedReply(answer=answer or "", citations=citations)
