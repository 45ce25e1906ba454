"""
Chunk course documents into a JSONL fragment corpus.

Two modes:
- Default (dry-run): extract and chunk the given files and print a page
  distribution summary, no writes.
- Apply mode (--apply): append the fragments to the corpus file, or with
  --course-id store them in the database configured by DATABASE_URL.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, List

from coursetutor.config import TutorSettings
from coursetutor.rag.index import CORPUS_PATH, write_fragments
from coursetutor.rag.ingest import IngestedDocument, ingest_document


def chunk_files(paths: List[Path], settings: TutorSettings) -> Dict[Path, IngestedDocument]:
    out: Dict[Path, IngestedDocument] = {}
    for path in paths:
        out[path] = ingest_document(path.read_bytes(), path.name, settings.retrieval.chunking)
    return out


def summarize(chunked: Dict[Path, IngestedDocument]) -> None:
    for path, doc in chunked.items():
        pages = Counter(f.page for f in doc.fragments)
        estimated = any(f.page_is_estimate for f in doc.fragments)
        total = doc.page_count if doc.page_count is not None else len(pages)
        print(
            f"{path.name}: {len(doc.fragments)} fragments on {len(pages)} of {total} pages"
            + (" (estimated)" if estimated else "")
        )
        for page, count in sorted(pages.items()):
            print(f"  page {page:>4}: {count}")


async def store_in_db(course_id: str, chunked: Dict[Path, IngestedDocument]) -> None:
    from coursetutor.db.session import AsyncSessionLocal
    from coursetutor.db.stores import SQLCorpusStore

    store = SQLCorpusStore(AsyncSessionLocal)
    for path, doc in chunked.items():
        if not doc.fragments:
            print(f"Skipping {path.name}: no fragments")
            continue
        doc_id = await store.add_document(
            course_id, path.name, doc.fragments, page_count=doc.page_count
        )
        print(f"Stored {len(doc.fragments)} fragments from {path.name} as document {doc_id}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Chunk PDF or text documents into course fragments.",
    )
    parser.add_argument("inputs", type=Path, nargs="+", help="Documents to chunk (.pdf, .txt, .md)")
    parser.add_argument(
        "--output",
        type=Path,
        default=CORPUS_PATH,
        help="JSONL corpus to append to",
    )
    parser.add_argument(
        "--course-id",
        default=None,
        help="Store fragments in the database for this course instead of the JSONL corpus",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Write the fragments. Without this flag, runs in dry-run mode.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    missing = [p for p in args.inputs if not p.exists()]
    if missing:
        print(f"Error: input file not found: {', '.join(str(p) for p in missing)}")
        return

    settings = TutorSettings.from_env()
    chunked = chunk_files(args.inputs, settings)
    summarize(chunked)

    if not args.apply:
        print("\nDry run complete. Nothing was written.")
        return

    if args.course_id:
        asyncio.run(store_in_db(args.course_id, chunked))
    else:
        total = sum(write_fragments(doc.fragments, args.output) for doc in chunked.values())
        print(f"\nAppended {total} fragments to {args.output}")


if __name__ == "__main__":
    main()
