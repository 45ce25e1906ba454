"""
Course searcher: keyword expansion, relevance scoring and page diversity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from .config import RetrievalConfig
from .diversity import diversify
from .index import Fragment, FragmentIndex
from .keywords import ExpandedQuery, QueryExpander
from .retriever import RetrievalResult
from .scorer import RelevanceScorer

logger = logging.getLogger(__name__)


@dataclass
class CourseSearcher:
    """Searches one course corpus snapshot. Safe to share between threads."""

    index: FragmentIndex
    config: RetrievalConfig = field(default_factory=RetrievalConfig)
    expander: QueryExpander = field(default_factory=QueryExpander)

    def __post_init__(self) -> None:
        self.scorer = RelevanceScorer(self.index, self.config.scoring)

    @classmethod
    def from_fragments(
        cls,
        fragments: Sequence[Fragment],
        *,
        config: RetrievalConfig | None = None,
        synonyms: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> "CourseSearcher":
        """Build a searcher from a course's fragments."""
        return cls(
            index=FragmentIndex.from_fragments(fragments),
            config=config or RetrievalConfig(),
            expander=QueryExpander(synonyms),
        )

    def rank(self, query: str | ExpandedQuery) -> List[RetrievalResult]:
        """All matching fragments, best first, without the diversity cut."""
        if isinstance(query, str):
            query = self.expander.expand(query)
        return self.scorer.score(query)

    def search(self, query: str, top_k: int | None = None) -> List[RetrievalResult]:
        """
        Search for the top-k fragments matching the query.

        Implements the Retriever protocol.
        """
        if top_k is None:
            top_k = self.config.top_k

        ranked = self.rank(query)
        results = diversify(
            ranked,
            top_k,
            max_per_page=self.config.max_per_page,
            overcollect=self.config.overcollect,
        )
        logger.debug("Query %r matched %s fragments, returning %s", query, len(ranked), len(results))
        for i, r in enumerate(results, 1):
            logger.debug(
                '  %s. "%s" - Page %s (score: %.1f)', i, r.fragment.filename, r.fragment.page, r.score
            )
        return results
