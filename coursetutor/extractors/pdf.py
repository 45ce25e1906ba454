"""
Page-aware text extraction.

PDFs are read with PyMuPDF in a single pass, one PageText per page, so page
numbers are exact. Plain-text documents have no page structure and come back
as whole-document text for the estimated-page fallback.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import List, Optional

import fitz

from coursetutor.rag.chunker import PageText

TEXT_SUFFIXES = frozenset({".txt", ".md", ".m"})


class DocumentExtractionError(Exception):
    """The document could not be read (corrupt, encrypted, unsupported)."""


@dataclasses.dataclass
class ExtractedDocument:
    filename: str
    # None when the source has no page structure.
    pages: Optional[List[PageText]]
    text: str = ""
    page_count: Optional[int] = None

    @property
    def has_pages(self) -> bool:
        return self.pages is not None


def _page_text(page: "fitz.Page") -> str:
    return page.get_text("text") or ""


def extract_pdf_pages(data: bytes) -> List[PageText]:
    """Extract text page by page; page numbers are 1-based."""
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise DocumentExtractionError(f"could not open PDF: {e}") from e

    try:
        if doc.needs_pass:
            raise DocumentExtractionError("PDF is password protected")
        return [PageText(page_number=i + 1, text=_page_text(page)) for i, page in enumerate(doc)]
    except DocumentExtractionError:
        raise
    except Exception as e:
        raise DocumentExtractionError(f"could not read PDF pages: {e}") from e
    finally:
        doc.close()


def extract_document(data: bytes, filename: str) -> ExtractedDocument:
    """Dispatch on file extension: PDFs by page, text files as a single block."""
    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        pages = extract_pdf_pages(data)
        return ExtractedDocument(filename=filename, pages=pages, page_count=len(pages))
    if suffix in TEXT_SUFFIXES:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentExtractionError(f"{filename} is not valid UTF-8 text") from e
        return ExtractedDocument(filename=filename, pages=None, text=text)
    raise DocumentExtractionError(f"unsupported document type: {suffix or filename}")
