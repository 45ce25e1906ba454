from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple


class Topic(str, Enum):
    """Curriculum concepts used for classification and mastery tracking."""

    BASICS = "basics"
    ARRAYS_MATRICES = "arrays_matrices"
    LOOPS = "loops"
    CONDITIONALS = "conditionals"
    FUNCTIONS = "functions"
    PLOTTING = "plotting"
    FILE_IO = "file_io"
    OPERATORS = "operators"
    STRINGS = "strings"
    CELL_ARRAYS = "cell_arrays"
    STRUCTURES = "structures"
    DEBUGGING = "debugging"
    PERFORMANCE = "performance"
    ADVANCED = "advanced"
    GENERAL = "general"

    @property
    def display_name(self) -> str:
        return TOPIC_DISPLAY_NAMES[self]


TOPIC_DISPLAY_NAMES: Dict[Topic, str] = {
    Topic.BASICS: "Basics",
    Topic.ARRAYS_MATRICES: "Arrays & Matrices",
    Topic.LOOPS: "Loops",
    Topic.CONDITIONALS: "Conditionals",
    Topic.FUNCTIONS: "Functions",
    Topic.PLOTTING: "Plotting",
    Topic.FILE_IO: "File I/O",
    Topic.OPERATORS: "Operators",
    Topic.STRINGS: "Strings",
    Topic.CELL_ARRAYS: "Cell Arrays",
    Topic.STRUCTURES: "Structures",
    Topic.DEBUGGING: "Debugging",
    Topic.PERFORMANCE: "Performance",
    Topic.ADVANCED: "Advanced Topics",
    Topic.GENERAL: "General",
}

# Order matters: on equal scores the earlier topic wins.
DEFAULT_TOPIC_KEYWORDS: Tuple[Tuple[Topic, Tuple[str, ...]], ...] = (
    (Topic.BASICS, ("variable", "assignment", "workspace", "command", "basic", "start", "introduction")),
    (Topic.ARRAYS_MATRICES, ("array", "matrix", "matrices", "vector", "dimension", "size", "reshape", "transpose")),
    (Topic.LOOPS, ("for", "while", "loop", "iteration", "iterate", "repeat", "nested loop")),
    (Topic.CONDITIONALS, ("if", "else", "elseif", "switch", "case", "condition", "comparison")),
    (Topic.FUNCTIONS, ("function", "return", "input", "output", "parameter", "argument", "call")),
    (Topic.PLOTTING, ("plot", "graph", "figure", "visualization", "chart", "subplot", "axis", "xlabel", "ylabel")),
    (Topic.FILE_IO, ("fopen", "fclose", "fread", "fwrite", "fprintf", "fscanf", "load", "save", "file")),
    (Topic.OPERATORS, ("operator", "arithmetic", "addition", "subtraction", "multiplication", "division")),
    (Topic.STRINGS, ("string", "char", "text", "concatenation", "strcmp", "strcat")),
    (Topic.CELL_ARRAYS, ("cell", "cell array", "cellstr")),
    (Topic.STRUCTURES, ("struct", "structure", "field")),
    (Topic.DEBUGGING, ("error", "debug", "breakpoint", "warning", "exception", "try", "catch")),
    (Topic.PERFORMANCE, ("performance", "optimize", "speed", "efficient", "vectorize")),
    (Topic.ADVANCED, ("object", "class", "oop", "handle", "anonymous function", "lambda")),
)


def all_topics() -> List[Topic]:
    """Named curriculum topics, in declaration order (without ``general``)."""
    return [t for t in Topic if t is not Topic.GENERAL]


def format_topic_name(topic: Topic | str) -> str:
    """Display name for a topic; unknown strings are returned unchanged."""
    try:
        return Topic(topic).display_name
    except ValueError:
        return str(topic)


def parse_topic_table(raw: Mapping[str, Sequence[str]]) -> Tuple[Tuple[Topic, Tuple[str, ...]], ...]:
    """Build an ordered keyword table from a ``{topic_name: [keywords]}`` mapping."""
    table = []
    for name, keywords in raw.items():
        topic = Topic(name)
        if topic is Topic.GENERAL:
            raise ValueError("'general' is the fallback topic and takes no keywords")
        table.append((topic, tuple(k.lower() for k in keywords)))
    return tuple(table)


class TopicClassifier:
    """
    Weighted keyword topic classifier.

    Each topic scores ``occurrences * len(keyword)`` summed over its keywords
    (word-boundary, case-insensitive). The highest non-zero score wins and
    ties go to the topic declared first; otherwise the question is ``general``.
    """

    def __init__(
        self,
        table: Optional[Sequence[Tuple[Topic, Sequence[str]]]] = None,
    ) -> None:
        table = DEFAULT_TOPIC_KEYWORDS if table is None else table
        self._patterns: List[Tuple[Topic, List[Tuple[re.Pattern[str], int]]]] = [
            (
                Topic(topic),
                [(re.compile(rf"\b{re.escape(kw.lower())}\b"), len(kw)) for kw in keywords],
            )
            for topic, keywords in table
        ]

    @property
    def topics(self) -> List[Topic]:
        return [t for t, _ in self._patterns]

    def scores(self, question: str) -> Dict[Topic, int]:
        """Per-topic scores for the question; topics without a hit are omitted."""
        text = (question or "").lower()
        out: Dict[Topic, int] = {}
        if not text.strip():
            return out
        for topic, patterns in self._patterns:
            total = sum(len(p.findall(text)) * weight for p, weight in patterns)
            if total > 0:
                out[topic] = total
        return out

    def classify(self, question: str) -> Topic:
        best = Topic.GENERAL
        best_score = 0
        for topic, score in self.scores(question).items():
            if score > best_score:
                best, best_score = topic, score
        return best
