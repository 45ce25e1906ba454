from __future__ import annotations

import json
from pathlib import Path

import pytest

from coursetutor.config import TutorSettings
from coursetutor.skills.topics import Topic


def _write_tables(path: Path) -> Path:
    path.write_text(
        json.dumps(
            {
                "topics": {"loops": ["parfor"], "plotting": ["Scatter"]},
                "synonyms": {"Parfor": ["Parallel"]},
                "mastery": {"ceiling": 90},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_defaults():
    settings = TutorSettings()

    assert settings.retrieval.top_k == 8
    assert settings.retrieval.chunking.chunk_size == 500
    assert settings.mastery.ceiling == 95
    assert settings.topic_table[0][0] is Topic.BASICS
    assert "loop" in settings.synonyms


def test_with_tables(tmp_path: Path):
    settings = TutorSettings().with_tables(_write_tables(tmp_path / "tables.json"))

    assert settings.topic_table == ((Topic.LOOPS, ("parfor",)), (Topic.PLOTTING, ("scatter",)))
    assert settings.synonyms == {"parfor": ("parallel",)}
    assert settings.mastery.ceiling == 90
    assert settings.mastery.early_step == 8


def test_with_tables_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        TutorSettings().with_tables(tmp_path / "nope.json")


def test_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TUTOR_TOP_K", "3")
    monkeypatch.setenv("TUTOR_CHUNK_SIZE", "200")
    monkeypatch.setenv("TUTOR_CHUNK_OVERLAP", "50")
    monkeypatch.setenv("TUTOR_TABLES_PATH", str(_write_tables(tmp_path / "tables.json")))

    settings = TutorSettings.from_env(env_file=tmp_path / "missing.env")

    assert settings.retrieval.top_k == 3
    assert settings.retrieval.chunking.step == 150
    assert settings.mastery.ceiling == 90


def test_from_env_rejects_bad_overlap(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TUTOR_CHUNK_SIZE", "100")
    monkeypatch.setenv("TUTOR_CHUNK_OVERLAP", "100")
    monkeypatch.delenv("TUTOR_TABLES_PATH", raising=False)

    with pytest.raises(ValueError):
        TutorSettings.from_env(env_file=tmp_path / "missing.env")
