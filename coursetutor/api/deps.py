"""
Build the tutor service for the API (used in lifespan) and expose it to routes.
"""

from __future__ import annotations

import logging
import os

from fastapi import HTTPException, Request

from coursetutor.config import TutorSettings
from coursetutor.db.memory import InMemoryAnalyticsStore, InMemoryCorpusStore, InMemoryMasteryStore
from coursetutor.orchestrator import TutorService

logger = logging.getLogger(__name__)


def build_tutor_service(settings: TutorSettings | None = None) -> TutorService:
    """
    SQL-backed service when DATABASE_URL is set, in-memory stores otherwise.
    """
    settings = settings or TutorSettings.from_env()
    if os.getenv("DATABASE_URL"):
        from coursetutor.db.session import AsyncSessionLocal
        from coursetutor.db.stores import SQLAnalyticsStore, SQLCorpusStore, SQLMasteryStore

        return TutorService(
            corpus=SQLCorpusStore(AsyncSessionLocal),
            mastery_store=SQLMasteryStore(AsyncSessionLocal),
            analytics=SQLAnalyticsStore(AsyncSessionLocal),
            settings=settings,
        )

    logger.warning("DATABASE_URL not set; using in-memory stores")
    return TutorService(
        corpus=InMemoryCorpusStore(),
        mastery_store=InMemoryMasteryStore(),
        analytics=InMemoryAnalyticsStore(),
        settings=settings,
    )


def get_tutor(request: Request) -> TutorService:
    tutor = getattr(request.app.state, "tutor", None)
    if tutor is None:
        raise HTTPException(status_code=503, detail="Service unavailable: tutor not initialized.")
    return tutor
