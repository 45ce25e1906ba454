"""
Tests for page-local chunking.
"""

from __future__ import annotations

import pytest

from coursetutor.rag import ChunkingConfig, PageText, chunk_document, chunk_pages


def test_chunk_pages_uses_sliding_window_offsets():
    pages = [PageText(page_number=1, text="x" * 1000)]

    fragments = chunk_pages(pages, "notes.pdf")

    assert [f.start_char for f in fragments] == [0, 400, 800]
    assert [len(f.content) for f in fragments] == [500, 500, 200]
    assert all(f.page == 1 and f.filename == "notes.pdf" for f in fragments)
    assert not any(f.page_is_estimate for f in fragments)


def test_chunk_pages_drops_short_tail_windows():
    kept = chunk_pages([PageText(1, "y" * 1260)], "a.pdf")
    dropped = chunk_pages([PageText(1, "y" * 1240)], "a.pdf")

    # Tail window at offset 1200 is 60 chars (kept) vs 40 chars (dropped).
    assert [f.start_char for f in kept] == [0, 400, 800, 1200]
    assert [f.start_char for f in dropped] == [0, 400, 800]


def test_chunk_pages_never_crosses_pages_and_skips_empty_pages():
    pages = [
        PageText(1, "first page " * 30),
        PageText(2, "   "),
        PageText(3, ""),
        PageText(4, "fourth page " * 60),
    ]

    fragments = chunk_pages(pages, "book.pdf")

    assert {f.page for f in fragments} == {1, 4}
    for f in fragments:
        source = pages[f.page - 1].text
        assert f.content in source
        assert 1 <= f.page <= len(pages)


def test_chunk_pages_content_length_bounds():
    text = ("Loops repeat a block of code.   \n" * 80) + "end"
    fragments = chunk_pages([PageText(1, text), PageText(2, text[:300])], "c.pdf")

    assert fragments
    for f in fragments:
        assert 50 < len(f.content) <= 500
        assert f.content == f.content.strip()


def test_chunk_pages_respects_config():
    config = ChunkingConfig(chunk_size=100, overlap=20, min_chunk_chars=10)
    fragments = chunk_pages([PageText(1, "z" * 250)], "d.pdf", config)

    # The 10-char tail at offset 240 is not above min_chunk_chars.
    assert [f.start_char for f in fragments] == [0, 80, 160]
    assert [len(f.content) for f in fragments] == [100, 100, 90]


def test_chunk_pages_rejects_zero_page_number():
    with pytest.raises(ValueError):
        chunk_pages([PageText(0, "text " * 40)], "bad.pdf")


def test_chunk_document_marks_estimated_pages():
    config = ChunkingConfig(chars_per_page_estimate=3000)
    fragments = chunk_document("w" * 7000, "scan.txt", config)

    assert fragments
    assert all(f.page_is_estimate for f in fragments)
    by_offset = {f.start_char: f.page for f in fragments}
    assert by_offset[0] == 1
    assert by_offset[2800] == 1
    assert by_offset[3200] == 2
    assert by_offset[6400] == 3


def test_chunk_document_clamps_to_known_page_count():
    fragments = chunk_document("w" * 7000, "scan.txt", page_count=2)

    assert max(f.page for f in fragments) == 2


def test_chunk_document_empty_text():
    assert chunk_document("   ", "empty.txt") == []


def test_chunking_config_validates_overlap():
    with pytest.raises(ValueError):
        ChunkingConfig(chunk_size=100, overlap=100)
