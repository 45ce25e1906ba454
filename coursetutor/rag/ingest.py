"""
Document ingestion: extraction plus chunking, degrading to zero fragments on failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from coursetutor.extractors.pdf import DocumentExtractionError, extract_document

from .chunker import chunk_document, chunk_pages
from .config import ChunkingConfig
from .index import Fragment

logger = logging.getLogger(__name__)


@dataclass
class IngestedDocument:
    filename: str
    fragments: List[Fragment] = field(default_factory=list)
    # Pages reported by the extractor; None when the source has no page structure.
    page_count: Optional[int] = None


def ingest_document(
    data: bytes,
    filename: str,
    config: Optional[ChunkingConfig] = None,
) -> IngestedDocument:
    """
    Turn raw document bytes into fragments.

    An unreadable document is logged and yields no fragments, so the course
    keeps whatever material it already has.
    """
    try:
        extracted = extract_document(data, filename)
    except DocumentExtractionError as e:
        logger.warning("Skipping %s: %s", filename, e)
        return IngestedDocument(filename=filename)

    if extracted.has_pages:
        logger.info("Extracted %s: %s pages", filename, extracted.page_count)
        fragments = chunk_pages(extracted.pages or [], filename, config)
    else:
        logger.warning("%s has no page structure; page numbers will be estimated", filename)
        fragments = chunk_document(extracted.text, filename, config, page_count=extracted.page_count)
    return IngestedDocument(filename=filename, fragments=fragments, page_count=extracted.page_count)
