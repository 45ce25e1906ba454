"""
Keyword extraction and synonym-based query expansion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

PUNCT_RE = re.compile(r"[^\w\s]")

STOPWORDS: FrozenSet[str] = frozenset({
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "should",
    "could", "can", "may", "might", "must", "i", "you", "he", "she", "it",
    "we", "they", "what", "which", "who", "when", "where", "why", "how",
    "to", "from", "in", "on", "at", "by", "for", "with", "about", "as",
    "this", "that", "these", "those", "my", "your", "help", "me", "understand",
})

DEFAULT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "loop": ("for", "while", "iteration", "repeat", "control flow"),
    "loops": ("for", "while", "iteration", "repeat", "control flow"),
    "function": ("functions", "method", "subroutine"),
    "functions": ("function", "method", "subroutine"),
    "array": ("arrays", "matrix", "matrices", "vector"),
    "arrays": ("array", "matrix", "matrices", "vector"),
    "plot": ("plotting", "graph", "visualization", "figure"),
    "variable": ("variables", "data", "value"),
    "conditional": ("if", "else", "switch", "case", "condition"),
    "error": ("errors", "exception", "debug", "debugging"),
}


@dataclass(frozen=True)
class ExpandedQuery:
    """Primary keywords from the question and the lower-weighted related terms."""

    primary: Tuple[str, ...]
    expanded: Tuple[str, ...] = ()

    @property
    def all_terms(self) -> Tuple[str, ...]:
        return self.primary + self.expanded

    def __bool__(self) -> bool:
        return bool(self.primary or self.expanded)


def extract_keywords(text: str, stopwords: Iterable[str] = STOPWORDS) -> List[str]:
    """Lower-case, strip punctuation, drop short/stop words, dedupe in first-seen order."""
    stop = stopwords if isinstance(stopwords, (set, frozenset)) else frozenset(stopwords)
    seen: Dict[str, None] = {}
    for word in PUNCT_RE.sub(" ", (text or "").lower()).split():
        if len(word) <= 2 or word in stop:
            continue
        seen.setdefault(word, None)
    return list(seen)


class QueryExpander:
    """Turns a question into primary keywords plus synonym expansions."""

    def __init__(
        self,
        synonyms: Optional[Mapping[str, Sequence[str]]] = None,
        stopwords: Iterable[str] = STOPWORDS,
    ) -> None:
        table = DEFAULT_SYNONYMS if synonyms is None else synonyms
        self.synonyms: Dict[str, Tuple[str, ...]] = {
            k.lower(): tuple(t.lower() for t in v) for k, v in table.items()
        }
        self.stopwords = frozenset(stopwords)

    def expand_keywords(self, keywords: Sequence[str]) -> List[str]:
        primary = set(keywords)
        expanded: Dict[str, None] = {}
        for kw in keywords:
            for term in self.synonyms.get(kw, ()):
                if term not in primary:
                    expanded.setdefault(term, None)
        return list(expanded)

    def expand(self, question: str) -> ExpandedQuery:
        primary = extract_keywords(question, self.stopwords)
        return ExpandedQuery(
            primary=tuple(primary),
            expanded=tuple(self.expand_keywords(primary)),
        )
