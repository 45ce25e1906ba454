"""
Interface to the external response generator.

The generator turns the ranked fragments and topic label into prose. It lives
outside this package; anything with a matching ``generate`` method will do.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from coursetutor.rag.retriever import RetrievalResult
from coursetutor.skills.topics import Topic

from .citations import Citation
from .config import GenerationConfig
from .context_builder import build_context
from .prompts import TUTOR_PROMPT


@dataclass
class GeneratedReply:
    """Reply text plus the page references it cites."""

    answer: str
    citations: List[Citation]


class ResponseGenerator(Protocol):
    def generate(
        self,
        prompt: str,
        history: Sequence[dict],
        config: GenerationConfig,
    ) -> str:
        ...


def build_prompt(
    question: str,
    topic: Topic,
    results: Sequence[RetrievalResult],
    config: Optional[GenerationConfig] = None,
) -> str:
    config = config or GenerationConfig()
    context = build_context(results, max_tokens=config.context_max_tokens)
    return TUTOR_PROMPT.format(topic=topic.display_name, context=context, question=question)
