"""
Orchestrator: retrieval, topic labelling and progress tracking for one question.
"""

from .tutor import IngestResult, TutorContext, TutorService

__all__ = [
    "IngestResult",
    "TutorContext",
    "TutorService",
]
