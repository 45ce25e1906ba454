"""
Unified retriever interface for the tutoring pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .index import Fragment


@dataclass
class RetrievalResult:
    """A fragment together with its relevance score for one query."""

    fragment: Fragment
    score: float
    source: str = "keyword"

    def to_dict(self) -> dict:
        return {
            "filename": self.fragment.filename,
            "page": self.fragment.page,
            "content": self.fragment.content,
            "score": self.score,
        }


class Retriever(Protocol):
    """Protocol for retrieval implementations."""

    def search(self, query: str, top_k: int | None = None) -> list[RetrievalResult]:
        """
        Search for fragments matching the query.

        Args:
            query: Learner question
            top_k: Number of results to return

        Returns:
            List of RetrievalResult objects sorted by score (descending)
        """
        ...
