"""
FastAPI application for the tutor API.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .deps import build_tutor_service
from .routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the tutor service on startup; drop cached corpora on shutdown."""
    if getattr(app.state, "tutor", None) is None:
        app.state.tutor = build_tutor_service()
    yield
    app.state.tutor.clear_cache()


app = FastAPI(
    title="Course Tutor API",
    description="Course material retrieval, topic labelling and mastery tracking for the tutoring chat",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.include_router(router)
