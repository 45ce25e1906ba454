"""
Context builder for the response generator.

Formats ranked fragments into a single text block; every fragment is headed
with its page reference so the generator can cite exact pages.
"""

from __future__ import annotations

from typing import List, Sequence

from coursetutor.rag.retriever import RetrievalResult

from .citations import format_reference

MATERIALS_HEADER = "[RELEVANT COURSE MATERIALS FROM PDFs]"
NO_MATERIALS = "No relevant course materials were found for this question."


def _approx_tokens(text: str) -> int:
    """Rough token count (~4 chars per token for English)."""
    return max(1, len(text) // 4)


def build_context(
    results: Sequence[RetrievalResult],
    max_tokens: int = 2000,
) -> str:
    """
    Format ranked fragments into a context string.

    Args:
        results: Ranked fragments (order preserved).
        max_tokens: Approximate token budget; fragments are truncated or dropped to fit.

    Returns:
        Header followed by one ``[Reference: "file" - Page N]`` block per fragment,
        or a "no materials" notice when there are no results.
    """
    if not results:
        return NO_MATERIALS

    parts: List[str] = [MATERIALS_HEADER]
    used = _approx_tokens(MATERIALS_HEADER)

    for r in results:
        text = r.fragment.content.strip()
        segment = f"[{format_reference(r.fragment)}]\n{text}"
        seg_tokens = _approx_tokens(segment)

        if used + seg_tokens > max_tokens and len(parts) > 1:
            remaining = max_tokens - used - 40
            if remaining > 50 and text:
                parts.append(f"[{format_reference(r.fragment)}]\n{text[: remaining * 4]}...")
            break

        parts.append(segment)
        used += seg_tokens

    return "\n\n".join(parts)
