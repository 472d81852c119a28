"""PDF text extraction.

Uses PyMuPDF (fitz) for fast PDF text extraction. The extractor is a black box
for the rest of the pipeline: a path goes in, raw text and a page count come out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

LOGGER = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


@dataclass(slots=True)
class ExtractedText:
    text: str
    page_count: int


def iter_page_texts(doc: fitz.Document, path: Path) -> Iterator[str]:
    """Yield the raw text of each page, skipping pages that fail to decode."""
    for index in range(len(doc)):
        try:
            text = doc[index].get_text() or ""
        except Exception as exc:
            LOGGER.warning("Failed to read page %s in %s: %s", index, path, exc)
            continue
        if text.strip():
            yield text


def extract_text(path: Path) -> ExtractedText:
    """Return the concatenated page text of a PDF and its page count.

    Raises whatever PyMuPDF raises when the file cannot be opened.
    """
    doc = fitz.open(path)
    try:
        pages = list(iter_page_texts(doc, path))
        return ExtractedText(text=PAGE_SEPARATOR.join(pages), page_count=len(doc))
    finally:
        doc.close()
