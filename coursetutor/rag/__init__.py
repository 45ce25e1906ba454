"""
RAG (Retrieval-Augmented Generation) module.

Provides retrieval components over course document fragments:
- Page-local chunking
- Keyword extraction and synonym expansion
- Structure-aware relevance scoring
- Page diversity filtering
"""

from .chunker import PageText, chunk_document, chunk_pages
from .config import ChunkingConfig, RetrievalConfig, ScoringConfig
from .diversity import diversify
from .index import Fragment, FragmentIndex, load_fragments, write_fragments
from .keywords import ExpandedQuery, QueryExpander, extract_keywords
from .retriever import RetrievalResult, Retriever
from .scorer import RelevanceScorer
from .search import CourseSearcher

__all__ = [
    "ChunkingConfig",
    "CourseSearcher",
    "ExpandedQuery",
    "Fragment",
    "FragmentIndex",
    "PageText",
    "QueryExpander",
    "RelevanceScorer",
    "RetrievalConfig",
    "RetrievalResult",
    "Retriever",
    "ScoringConfig",
    "chunk_document",
    "chunk_pages",
    "diversify",
    "extract_keywords",
    "load_fragments",
    "write_fragments",
]
