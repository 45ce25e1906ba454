"""
Structure-aware keyword relevance scoring over a course corpus.

Score for one fragment is the sum of:

    - IDF-weighted primary keyword hits (occurrences * idf * len * 5)
    - expanded keyword hits (occurrences * len * 2)
    - fixed boosts for section headings, definitions, examples and captions
    - a proximity bonus for query terms that co-occur within a short window

and is then multiplied by 1.3 when the fragment reads like the start of a
section or a definition. Fragments without any keyword hit score zero and are
dropped.
"""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ScoringConfig
from .index import TOKEN_RE, FragmentIndex, IndexedFragment
from .keywords import ExpandedQuery
from .retriever import RetrievalResult

SECTION_RE = re.compile(r"^\s*\d+(?:\.\d+)*\.?\s+[a-z]|\b(?:chapter|section)\s+\d+", re.M)
EXAMPLE_RE = re.compile(r"\b(?:for instance|for example|consider)\b|\be\.g\.")
CAPTION_RE = re.compile(r"\b(?:figure|fig\.|table)\s*\d+")
RICH_START_RE = re.compile(
    r"^\s*(?:\d+(?:\.\d+)*\.?\s|(?:chapter|section|introduction|definition|overview)\b)"
)
DEFINITIONAL_PHRASE_RE = re.compile(r"\b(?:is defined as|refers to|definition of|is called)\b")

_LEADING_CHARS = 120


def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b")


def _definition_pattern(keyword: str) -> re.Pattern[str]:
    kw = re.escape(keyword)
    return re.compile(
        rf"\b{kw}\s+(?:is|are|means|refers\s+to|(?:is\s+)?defined\s+as)\b"
        rf"|\bdefinition\s+of\s+(?:the\s+|an?\s+)?{kw}\b"
    )


def _term_positions(entry: IndexedFragment, term: str) -> Tuple[int, ...]:
    """Token positions where ``term`` starts (multi-word terms match as a sequence)."""
    parts = TOKEN_RE.findall(term)
    if not parts:
        return ()
    starts = entry.positions.get(parts[0], ())
    if len(parts) == 1:
        return starts
    n = len(parts)
    return tuple(i for i in starts if entry.tokens[i : i + n] == tuple(parts))


class RelevanceScorer:
    """Ranks the fragments of one ``FragmentIndex`` against an expanded query."""

    def __init__(self, index: FragmentIndex, config: Optional[ScoringConfig] = None) -> None:
        self.index = index
        self.config = config or ScoringConfig()

    def idf(self, doc_freq: int) -> float:
        total = len(self.index)
        if doc_freq <= 0 or total <= 0:
            return 1.0
        return math.log(total / doc_freq) + 1.0

    def structural_boost(self, entry: IndexedFragment, definitions: Sequence[re.Pattern[str]]) -> float:
        """Fixed boosts; ``definitions`` holds one compiled definition pattern per primary keyword."""
        cfg = self.config
        text = entry.text
        boost = 0.0
        if SECTION_RE.search(text):
            boost += cfg.section_bonus
        for pattern in definitions:
            boost += cfg.definition_bonus * len(pattern.findall(text))
        if EXAMPLE_RE.search(text):
            boost += cfg.example_bonus
        if CAPTION_RE.search(text):
            boost += cfg.caption_bonus
        return boost

    def proximity_bonus(self, entry: IndexedFragment, present_terms: Sequence[str]) -> float:
        cfg = self.config
        positions = [(t, _term_positions(entry, t)) for t in present_terms]
        positions = [(t, p) for t, p in positions if p]
        bonus = 0.0
        for a in range(len(positions)):
            for b in range(a + 1, len(positions)):
                for i in positions[a][1]:
                    for j in positions[b][1]:
                        d = abs(i - j)
                        if d < cfg.proximity_window:
                            bonus += (cfg.proximity_window - d) * cfg.proximity_weight
        return bonus

    def has_rich_context(self, entry: IndexedFragment) -> bool:
        if RICH_START_RE.search(entry.text[:_LEADING_CHARS]):
            return True
        return DEFINITIONAL_PHRASE_RE.search(entry.text) is not None

    def score(self, query: ExpandedQuery) -> List[RetrievalResult]:
        """Return matching fragments sorted by score (desc), ties in corpus order."""
        if not query or len(self.index) == 0:
            return []

        cfg = self.config
        patterns: Dict[str, re.Pattern[str]] = {t: _term_pattern(t) for t in query.all_terms}
        definitions = [_definition_pattern(kw) for kw in query.primary]

        counts: List[Dict[str, int]] = []
        doc_freq: Dict[str, int] = {kw: 0 for kw in query.primary}
        for entry in self.index.entries:
            row = {t: len(p.findall(entry.text)) for t, p in patterns.items()}
            counts.append(row)
            for kw in query.primary:
                if row[kw]:
                    doc_freq[kw] += 1
        idf = {kw: self.idf(df) for kw, df in doc_freq.items()}

        scored: List[RetrievalResult] = []
        for entry, row in zip(self.index.entries, counts):
            present = [t for t in query.all_terms if row[t]]
            if not present:
                continue

            s = 0.0
            for kw in query.primary:
                s += row[kw] * idf[kw] * len(kw) * cfg.primary_weight
            for term in query.expanded:
                s += row[term] * len(term) * cfg.expanded_weight
            s += self.structural_boost(entry, definitions)
            s += self.proximity_bonus(entry, present)
            if self.has_rich_context(entry):
                s *= cfg.context_multiplier

            if s > 0:
                scored.append(RetrievalResult(fragment=entry.fragment, score=s, source="keyword"))

        scored.sort(key=lambda r: r.score, reverse=True)
        return scored
