"""
Format page references for retrieved fragments and check the ones a reply cites.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

from coursetutor.rag.index import Fragment
from coursetutor.rag.retriever import RetrievalResult

REFERENCE_RE = re.compile(r'Reference:\s*"([^"]+)"\s*-\s*Page\s+(\d+)', re.IGNORECASE)


@dataclass
class Citation:
    """A page reference found in generated text."""

    filename: str
    page: int
    # False when the reply cites a page that was not in the supplied fragments.
    grounded: bool
    snippet: str = ""


def format_reference(fragment: Fragment) -> str:
    """``Reference: "<filename>" - Page <page>``; estimated pages are marked."""
    ref = f'Reference: "{fragment.filename}" - Page {fragment.page}'
    if fragment.page_is_estimate:
        ref += " (estimated)"
    return ref


def extract_citations(
    answer: str,
    results: Sequence[RetrievalResult],
) -> List[Citation]:
    """
    Parse ``Reference: "file" - Page N`` markers in the reply, in order of
    first appearance, and flag any that do not match a supplied fragment.
    """
    by_page = {(r.fragment.filename, r.fragment.page): r.fragment for r in results}
    seen = set()
    citations: List[Citation] = []
    for m in REFERENCE_RE.finditer(answer or ""):
        key = (m.group(1), int(m.group(2)))
        if key in seen:
            continue
        seen.add(key)
        fragment = by_page.get(key)
        snippet = ""
        if fragment is not None:
            snippet = fragment.content[:200].strip()
            if len(fragment.content) > 200:
                snippet += "..."
        citations.append(
            Citation(filename=key[0], page=key[1], grounded=fragment is not None, snippet=snippet)
        )
    return citations
