"""
Greedy page-diversity filter applied after ranking.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from .retriever import RetrievalResult


def diversify(
    results: Sequence[RetrievalResult],
    top_k: int,
    *,
    max_per_page: int = 2,
    overcollect: float = 1.5,
) -> List[RetrievalResult]:
    """
    Cap how many results come from the same page.

    Walks the score-sorted results once. A result is admitted if its page has
    fewer than ``max_per_page`` admissions, or while fewer than ``top_k / 2``
    results have been admitted at all, so strong single-page matches still
    fill the top. Collection stops at ``overcollect * top_k`` admissions and
    the first ``top_k`` are returned.
    """
    if top_k <= 0:
        return []

    per_page: Dict[Tuple[str, int], int] = defaultdict(int)
    admitted: List[RetrievalResult] = []
    limit = overcollect * top_k

    for r in results:
        if len(admitted) >= limit:
            break
        key = (r.fragment.filename, r.fragment.page)
        if per_page[key] < max_per_page or len(admitted) < top_k / 2:
            admitted.append(r)
            per_page[key] += 1

    return admitted[:top_k]
