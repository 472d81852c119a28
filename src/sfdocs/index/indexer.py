"""Offline index build pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from sfdocs.index.classifier import DEFAULT_RULES, DocumentRule, classify_document
from sfdocs.index.storage import SQLiteDocStore
from sfdocs.ingestion.pdf_loader import ExtractedText, extract_text
from sfdocs.models import DocumentMetadata
from sfdocs.utils.files import iter_pdf_paths, title_from_file_name
from sfdocs.utils.text import chunk_text, clean_pdf_text

LOGGER = logging.getLogger(__name__)

MIN_DOCUMENT_CHARS = 100
MIN_CHUNK_CHARS = 50

Extractor = Callable[[Path], ExtractedText]


def find_pdfs(paths: Sequence[Path]) -> list[Path]:
    """Find all PDF files under the given paths."""
    return list(iter_pdf_paths(paths))


@dataclass(slots=True)
class IndexStats:
    documents_indexed: int = 0
    documents_failed: int = 0
    total_chunks: int = 0
    processed_files: list[Path] = field(default_factory=list)
    failed_files: list[Path] = field(default_factory=list)

    def record_success(self, path: Path, chunk_count: int) -> None:
        self.documents_indexed += 1
        self.total_chunks += chunk_count
        self.processed_files.append(path)

    def record_failure(self, path: Path) -> None:
        self.documents_failed += 1
        self.failed_files.append(path)
        self.processed_files.append(path)


class Indexer:
    """Builds a complete index from scratch and swaps it in on success."""

    def __init__(
        self,
        db_path: Path,
        *,
        chunk_chars: int = 1500,
        overlap: int = 150,
        rules: Sequence[DocumentRule] = DEFAULT_RULES,
        extractor: Extractor = extract_text,
    ) -> None:
        self.db_path = Path(db_path)
        self.chunk_chars = chunk_chars
        self.overlap = overlap
        self.rules = rules
        self.extractor = extractor

    def build(self, paths: Sequence[Path]) -> IndexStats:
        """Index every PDF found under ``paths`` and replace the index file.

        The new index is assembled in memory; the file on disk is only
        replaced once every document has been processed.
        """
        stats = IndexStats()
        pdf_files = find_pdfs(paths)
        if not pdf_files:
            LOGGER.warning("No PDF files found")
            return stats

        LOGGER.info("Found %s PDF files", len(pdf_files))
        store = SQLiteDocStore()
        try:
            for path in pdf_files:
                try:
                    LOGGER.info("Processing: %s", path)
                    chunk_count = self._index_single(store, path)
                except Exception as exc:
                    LOGGER.error("Failed to process %s: %s", path, exc)
                    stats.record_failure(path)
                    continue
                stats.record_success(path, chunk_count)

            saved = store.save(self.db_path)
        finally:
            store.close()

        LOGGER.info(
            "Indexed %s documents (%s failed, %s chunks) into %s",
            stats.documents_indexed,
            stats.documents_failed,
            stats.total_chunks,
            saved,
        )
        return stats

    def _index_single(self, store: SQLiteDocStore, path: Path) -> int:
        """Index a single PDF file and return the number of stored chunks."""
        extracted = self.extractor(path)
        text = clean_pdf_text(extracted.text)
        if len(text) < MIN_DOCUMENT_CHARS:
            raise ValueError("no text content")

        classification = classify_document(path.name, self.rules)
        document = DocumentMetadata(
            file_name=path.name,
            file_path=str(path),
            category=classification.category,
            subcategory=classification.subcategory,
            doc_type=classification.doc_type,
            title=title_from_file_name(path.name),
            keywords=list(classification.keywords),
            page_count=extracted.page_count,
            size_bytes=path.stat().st_size,
            priority=classification.priority,
        )

        chunks = [
            chunk
            for chunk in chunk_text(text, max_chars=self.chunk_chars, overlap=self.overlap)
            if len(chunk.content) > MIN_CHUNK_CHARS
        ]

        # One transaction per document: a failing file leaves no partial rows.
        with store.transaction():
            doc_id = store.insert_document(document)
            store.insert_chunks(doc_id, chunks)

        LOGGER.debug("%s: %s chunks", path.name, len(chunks))
        return len(chunks)
