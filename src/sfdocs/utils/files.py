"""Utility helpers for working with files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Iterator

_WORD_START_RE = re.compile(r"\b\w")


def iter_pdf_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield PDF paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_pdf_paths(sorted(child for child in item.rglob("*.pdf")))
        elif item.is_file() and item.suffix.lower() == ".pdf":
            yield item


def title_from_file_name(file_name: str) -> str:
    """Turn ``salesforce_apex_developer_guide.pdf`` into ``Apex Developer Guide``."""
    stem = re.sub(r"\.pdf$", "", file_name, flags=re.IGNORECASE)
    stem = re.sub(r"salesforce_", "", stem, flags=re.IGNORECASE)
    stem = stem.replace("_", " ")
    return _WORD_START_RE.sub(lambda match: match.group(0).upper(), stem).strip()
