"""Configuration for response generation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GenerationConfig:
    """Settings handed to the response generator."""

    max_tokens: int = 1024
    temperature: float = 0.3
    context_max_tokens: int = 2000
