"""
Runtime settings: component configs plus the tunable keyword tables.

Values come from the environment (a ``.env`` file at the project root is
loaded if present). ``TUTOR_TABLES_PATH`` may point at a JSON file with any of
the keys ``topics``, ``synonyms`` and ``mastery`` to override the built-in
topic keyword table, synonym table and mastery curve.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from dotenv import load_dotenv

from coursetutor.generation.config import GenerationConfig
from coursetutor.rag.config import ChunkingConfig, RetrievalConfig
from coursetutor.rag.keywords import DEFAULT_SYNONYMS
from coursetutor.skills.mastery import MasteryCurveConfig
from coursetutor.skills.topics import DEFAULT_TOPIC_KEYWORDS, Topic, parse_topic_table

PROJECT_ROOT = Path(__file__).resolve().parents[1]

logger = logging.getLogger(__name__)


@dataclass
class TutorSettings:
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    mastery: MasteryCurveConfig = field(default_factory=MasteryCurveConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    topic_table: Tuple[Tuple[Topic, Tuple[str, ...]], ...] = DEFAULT_TOPIC_KEYWORDS
    synonyms: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_SYNONYMS))
    mastery_max_retries: int = 5

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "TutorSettings":
        env_file = env_file or PROJECT_ROOT / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        chunking = ChunkingConfig(
            chunk_size=int(os.getenv("TUTOR_CHUNK_SIZE", "500")),
            overlap=int(os.getenv("TUTOR_CHUNK_OVERLAP", "100")),
            min_chunk_chars=int(os.getenv("TUTOR_MIN_CHUNK_CHARS", "50")),
        )
        settings = cls(
            retrieval=RetrievalConfig(
                top_k=int(os.getenv("TUTOR_TOP_K", "8")),
                chunking=chunking,
            ),
        )

        tables_path = os.getenv("TUTOR_TABLES_PATH")
        if tables_path:
            settings = settings.with_tables(Path(tables_path))
        return settings

    def with_tables(self, path: Path) -> "TutorSettings":
        """Return a copy with keyword tables and mastery constants read from a JSON file."""
        if not path.exists():
            raise FileNotFoundError(f"tables file not found at {path}")
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)

        updates: dict = {}
        if "topics" in raw:
            updates["topic_table"] = parse_topic_table(raw["topics"])
        if "synonyms" in raw:
            updates["synonyms"] = _parse_synonyms(raw["synonyms"])
        if "mastery" in raw:
            updates["mastery"] = dataclasses.replace(self.mastery, **raw["mastery"])
        logger.info("Loaded tables from %s: %s", path, ", ".join(sorted(updates)) or "nothing")
        return dataclasses.replace(self, **updates)


def _parse_synonyms(raw: Dict[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
    return {k.lower(): tuple(t.lower() for t in v) for k, v in raw.items()}
