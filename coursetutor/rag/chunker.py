"""
Page-local sliding-window chunker for course documents.

Every fragment comes from exactly one page so that citations always point at a
single, correct page number. When a document cannot be split into pages the
caller may use ``chunk_document``, which marks its page numbers as estimates.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from typing import Iterator, List, Optional, Sequence

from .config import ChunkingConfig
from .index import Fragment

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PageText:
    """Raw text of a single page, 1-based."""

    page_number: int
    text: str


def _iter_windows(text: str, config: ChunkingConfig) -> Iterator[tuple[int, str]]:
    for offset in range(0, len(text), config.step):
        window = text[offset : offset + config.chunk_size].strip()
        if len(window) > config.min_chunk_chars:
            yield offset, window


def chunk_pages(
    pages: Sequence[PageText],
    filename: str,
    config: Optional[ChunkingConfig] = None,
    *,
    document_id: Optional[str] = None,
) -> List[Fragment]:
    """Chunk page-segmented text into overlapping fragments that never cross a page."""
    config = config or ChunkingConfig()
    fragments: List[Fragment] = []

    for page in pages:
        if page.page_number < 1:
            raise ValueError(f"page numbers are 1-based, got {page.page_number}")
        if not page.text or not page.text.strip():
            continue
        for offset, window in _iter_windows(page.text, config):
            fragments.append(
                Fragment(
                    content=window,
                    filename=filename,
                    page=page.page_number,
                    start_char=offset,
                    document_id=document_id,
                )
            )

    distribution = Counter(f.page for f in fragments)
    logger.info(
        "Chunked %s: %s fragments from %s pages (%s pages covered)",
        filename,
        len(fragments),
        len(pages),
        len(distribution),
    )
    return fragments


def chunk_document(
    text: str,
    filename: str,
    config: Optional[ChunkingConfig] = None,
    *,
    page_count: Optional[int] = None,
    document_id: Optional[str] = None,
) -> List[Fragment]:
    """
    Chunk whole-document text when per-page text is unavailable.

    Pages are estimated from ``config.chars_per_page_estimate`` and clamped to
    ``page_count`` when it is known; every fragment has ``page_is_estimate=True``.
    """
    config = config or ChunkingConfig()
    if not text or not text.strip():
        return []

    fragments: List[Fragment] = []
    for offset, window in _iter_windows(text, config):
        page = 1 + offset // config.chars_per_page_estimate
        if page_count is not None and page_count > 0:
            page = min(page, page_count)
        fragments.append(
            Fragment(
                content=window,
                filename=filename,
                page=page,
                start_char=offset,
                page_is_estimate=True,
                document_id=document_id,
            )
        )

    logger.info(
        "Chunked %s without page boundaries: %s fragments (estimated pages)",
        filename,
        len(fragments),
    )
    return fragments
