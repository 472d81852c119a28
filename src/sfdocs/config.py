"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

DEFAULT_DB_PATH = Path("data/salesforce-docs.db")


def _default_pdf_dirs() -> List[Path]:
    return [Path("docs/pdfs"), Path("docs/release-notes")]


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    pdf_dirs: List[Path] = field(default_factory=_default_pdf_dirs)
    chunk_chars: int = 1500
    overlap: int = 150
    max_results: int = 5
    cache_size: int = 500
    cache_ttl: float = 300.0

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = DEFAULT_DB_PATH

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = DEFAULT_DB_PATH
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
