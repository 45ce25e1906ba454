"""
Configuration for the retrieval pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ChunkingConfig:
    """Sliding-window settings for turning page text into fragments."""

    chunk_size: int = 500
    overlap: int = 100
    min_chunk_chars: int = 50
    # Only used when a document cannot be split into real pages.
    chars_per_page_estimate: int = 3000

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= self.overlap < self.chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")
        if self.chars_per_page_estimate <= 0:
            raise ValueError("chars_per_page_estimate must be positive")

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap


@dataclass
class ScoringConfig:
    """Weights for the relevance scorer."""

    primary_weight: float = 5.0
    expanded_weight: float = 2.0
    section_bonus: float = 50.0
    definition_bonus: float = 40.0
    example_bonus: float = 20.0
    caption_bonus: float = 30.0
    proximity_window: int = 20
    proximity_weight: float = 2.0
    context_multiplier: float = 1.3


@dataclass
class RetrievalConfig:
    """Configuration for retrieval over a course corpus."""

    top_k: int = 8
    max_per_page: int = 2
    overcollect: float = 1.5
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
