"""
Hand-off to the response generator.

- Context building from ranked fragments with page references
- Prompt assembly for the external generator
- Citation extraction and grounding checks on the reply
"""

from .citations import Citation, extract_citations, format_reference
from .config import GenerationConfig
from .context_builder import build_context
from .generator import GeneratedReply, ResponseGenerator, build_prompt
from .prompts import TUTOR_PROMPT

__all__ = [
    "build_context",
    "build_prompt",
    "Citation",
    "extract_citations",
    "format_reference",
    "GenerationConfig",
    "GeneratedReply",
    "ResponseGenerator",
    "TUTOR_PROMPT",
]
