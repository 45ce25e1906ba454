"""
Core data types and loading utilities for course fragments.
"""

from __future__ import annotations

import dataclasses
import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


ROOT = Path(__file__).resolve().parents[2]
CORPUS_PATH = ROOT / "data" / "fragments.jsonl"

TOKEN_RE = re.compile(r"\w+")


@dataclasses.dataclass(frozen=True)
class Fragment:
    """A page-attributed slice of document text used as a retrieval unit."""

    content: str
    filename: str
    page: int
    start_char: int
    # True when the page came from a characters-per-page estimate.
    page_is_estimate: bool = False
    document_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.start_char < 0:
            raise ValueError(f"start_char must be >= 0, got {self.start_char}")

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class IndexedFragment:
    """Fragment plus the lower-cased text and token positions used for scoring."""

    fragment: Fragment
    text: str
    tokens: Tuple[str, ...]
    positions: Dict[str, Tuple[int, ...]]


@dataclasses.dataclass(frozen=True)
class FragmentIndex:
    """Immutable snapshot of one course corpus, prepared once per load."""

    entries: Tuple[IndexedFragment, ...]

    @classmethod
    def from_fragments(cls, fragments: Sequence[Fragment]) -> "FragmentIndex":
        entries = []
        for frag in fragments:
            text = frag.content.lower()
            tokens = tuple(TOKEN_RE.findall(text))
            positions: Dict[str, List[int]] = {}
            for i, tok in enumerate(tokens):
                positions.setdefault(tok, []).append(i)
            entries.append(
                IndexedFragment(
                    fragment=frag,
                    text=text,
                    tokens=tokens,
                    positions={tok: tuple(p) for tok, p in positions.items()},
                )
            )
        return cls(entries=tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)


def load_fragments(path: Path | None = None, filename: Optional[str] = None) -> List[Fragment]:
    """Load fragments from a JSONL corpus. If filename is set, only that document is loaded."""
    if path is None:
        path = CORPUS_PATH
    if not path.exists():
        raise FileNotFoundError(f"fragments.jsonl not found at {path}")

    fragments: List[Fragment] = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            obj = json.loads(line)
            if filename and obj.get("filename") != filename:
                continue
            fragments.append(
                Fragment(
                    content=obj["content"],
                    filename=obj["filename"],
                    page=int(obj["page"]),
                    start_char=int(obj.get("start_char", 0)),
                    page_is_estimate=bool(obj.get("page_is_estimate", False)),
                    document_id=obj.get("document_id"),
                )
            )
    return fragments


def write_fragments(fragments: Iterable[Fragment], path: Path) -> int:
    """Append fragments to a JSONL corpus. Returns the number written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("a", encoding="utf-8") as f:
        for frag in fragments:
            f.write(json.dumps(frag.to_dict(), ensure_ascii=False) + "\n")
            count += 1
    return count
