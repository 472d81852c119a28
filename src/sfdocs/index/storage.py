"""SQLite document and chunk store.

The store always lives in memory. ``load`` copies an index file into memory
once; ``save`` writes the whole database to a temporary file and renames it
over the target, so a previously saved index is never left half-written.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from sfdocs.models import CategoryCount, ChunkRecord, DocCategory, DocumentMetadata, DocumentSummary
from sfdocs.utils.text import strip_overlap

LOGGER = logging.getLogger(__name__)

_DOCUMENT_COLUMNS = (
    "d.id, d.file_name, d.file_path, d.category, d.subcategory, d.doc_type, d.title, "
    "d.description, d.keywords, d.api_version, d.last_updated, d.page_count, d.size_bytes, d.priority"
)


class StoreError(RuntimeError):
    """Raised when an index file cannot be read or written."""


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteDocStore:
    """Persistence layer for documents and their text chunks."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path) if db_path is not None else None
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._ensure_schema()

    @classmethod
    def load(cls, db_path: Path) -> "SQLiteDocStore":
        """Materialize an index file in memory."""
        path = Path(db_path)
        if not path.exists():
            raise StoreError(f"Database not found: {path}")

        store = cls(path)
        try:
            source = sqlite3.connect(path)
            try:
                source.backup(store._conn)
            finally:
                source.close()
            store._conn.execute("PRAGMA foreign_keys=ON;")
            store._ensure_schema()
        except sqlite3.Error as exc:
            store.close()
            raise StoreError(f"Unable to load index {path}: {exc}") from exc

        documents, chunks = store.counts()
        LOGGER.info("Loaded %s documents and %s chunks from %s", documents, chunks, path)
        return store

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    file_name TEXT NOT NULL UNIQUE,
                    file_path TEXT NOT NULL,
                    category TEXT NOT NULL,
                    subcategory TEXT,
                    doc_type TEXT NOT NULL DEFAULT 'developer_guide',
                    title TEXT NOT NULL,
                    description TEXT,
                    keywords TEXT,
                    api_version TEXT,
                    last_updated TEXT,
                    page_count INTEGER,
                    size_bytes INTEGER,
                    priority INTEGER DEFAULT 5 CHECK(priority >= 1 AND priority <= 10)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    document_id INTEGER NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    content_lower TEXT NOT NULL,
                    section_title TEXT,
                    page_number INTEGER,
                    FOREIGN KEY(document_id) REFERENCES documents(id) ON DELETE CASCADE,
                    UNIQUE(document_id, chunk_index)
                )
                """
            )
            # No FTS: matching is LIKE against content_lower.
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_category ON documents(category)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_subcategory ON documents(subcategory)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_priority ON documents(priority DESC)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_doc_type ON documents(doc_type)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_chunks_document_id ON chunks(document_id)")

    def save(self, db_path: Path | None = None) -> Path:
        """Write the whole store to disk, replacing any previous file atomically."""
        target = Path(db_path) if db_path is not None else self.db_path
        if target is None:
            raise StoreError("No database path to save to")

        self._conn.commit()
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_name(target.name + ".tmp")
        if tmp_path.exists():
            tmp_path.unlink()

        try:
            dest = sqlite3.connect(tmp_path)
            try:
                self._conn.backup(dest)
            finally:
                dest.close()
            os.replace(tmp_path, target)
        except (sqlite3.Error, OSError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise StoreError(f"Unable to write index {target}: {exc}") from exc

        self.db_path = target
        return target

    def insert_document(self, document: DocumentMetadata) -> int:
        """Insert a document row and return its id."""
        doc_id = self._conn.execute(
            """
            INSERT INTO documents(
                file_name, file_path, category, subcategory, doc_type, title, description,
                keywords, api_version, last_updated, page_count, size_bytes, priority
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                document.file_name,
                document.file_path,
                document.category.value,
                document.subcategory,
                document.doc_type.value,
                document.title,
                document.description,
                json.dumps(document.keywords, ensure_ascii=True),
                document.api_version,
                document.last_updated,
                document.page_count,
                document.size_bytes,
                document.priority,
            ),
        ).lastrowid
        document.id = doc_id
        return doc_id

    def insert_chunks(self, doc_id: int, chunks: Sequence[ChunkRecord]) -> int:
        """Insert a batch of chunks for a document."""
        conn = self._conn
        for chunk in chunks:
            conn.execute(
                """
                INSERT INTO chunks(
                    document_id, chunk_index, content, content_lower, section_title, page_number
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    doc_id,
                    chunk.index,
                    chunk.content,
                    chunk.content_lower,
                    chunk.section_title,
                    chunk.page_number,
                ),
            )
        return len(chunks)

    def delete_document(self, doc_id: int) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
        return cursor.rowcount > 0

    def match_chunks(
        self,
        terms: Sequence[str],
        *,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        limit: int = 500,
    ) -> List[sqlite3.Row]:
        """Return chunks containing any of ``terms``, highest-priority documents first.

        Terms must already be lowercase. Ordering happens before the limit, so a
        large candidate pool never pushes high-priority documents out.
        """
        if not terms:
            return []

        params: list = [f"%{escape_like(term)}%" for term in terms]
        like = " OR ".join("c.content_lower LIKE ? ESCAPE '\\'" for _ in terms)
        sql = f"""
            SELECT {_DOCUMENT_COLUMNS},
                c.id AS chunk_id, c.chunk_index, c.content, c.content_lower,
                c.section_title, c.page_number
            FROM chunks c
            JOIN documents d ON c.document_id = d.id
            WHERE ({like})
        """
        if category:
            sql += " AND d.category = ?"
            params.append(category)
        if subcategory:
            sql += " AND d.subcategory = ?"
            params.append(subcategory)
        sql += " ORDER BY d.priority DESC, c.id LIMIT ?"
        params.append(limit)

        return self._conn.execute(sql, params).fetchall()

    def get_document(self, doc_id: int) -> Optional[DocumentMetadata]:
        row = self._conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents d WHERE d.id = ?", (doc_id,)
        ).fetchone()
        return row_to_document(row) if row else None

    def get_document_by_file_name(self, file_name: str) -> Optional[DocumentMetadata]:
        """Exact file name first, then the highest-priority partial match."""
        row = self._conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents d WHERE d.file_name = ?", (file_name,)
        ).fetchone()
        if row is None:
            row = self._conn.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS} FROM documents d
                WHERE d.file_name LIKE ? ESCAPE '\\'
                ORDER BY d.priority DESC, d.id
                """,
                (f"%{escape_like(file_name)}%",),
            ).fetchone()
        return row_to_document(row) if row else None

    def get_document_content(self, doc_id: int, section: Optional[str] = None) -> str:
        """Reassemble a document's chunks, optionally limited to matching sections.

        Chunks of one section are merged under a single ``## title`` header and
        the overlap copied from the preceding chunk is dropped.
        """
        sql = "SELECT chunk_index, content, section_title FROM chunks WHERE document_id = ?"
        params: list = [doc_id]
        if section:
            sql += " AND section_title LIKE ? ESCAPE '\\'"
            params.append(f"%{escape_like(section)}%")
        sql += " ORDER BY chunk_index"

        parts: List[str] = []
        previous_index: Optional[int] = None
        previous_title: Optional[str] = None
        for row in self._conn.execute(sql, params):
            title = row["section_title"]
            continues = (
                previous_index is not None
                and row["chunk_index"] == previous_index + 1
                and title == previous_title
            )
            if continues:
                parts[-1] += "\n\n" + strip_overlap(row["content"])
            elif title:
                parts.append(f"## {title}\n\n{row['content']}")
            else:
                parts.append(row["content"])
            previous_index, previous_title = row["chunk_index"], title
        return "\n\n".join(parts)

    def category_stats(self) -> List[CategoryCount]:
        stats: List[CategoryCount] = []
        rows = self._conn.execute(
            "SELECT category, COUNT(*) AS count FROM documents GROUP BY category ORDER BY category"
        ).fetchall()
        for row in rows:
            subcategories = self._conn.execute(
                """
                SELECT subcategory, COUNT(*) AS count FROM documents
                WHERE category = ?
                GROUP BY subcategory
                ORDER BY subcategory
                """,
                (row["category"],),
            ).fetchall()
            stats.append(
                CategoryCount(
                    category=row["category"],
                    count=row["count"],
                    subcategories=[(sub["subcategory"], sub["count"]) for sub in subcategories],
                )
            )
        return stats

    def document_summaries(
        self, category: Optional[DocCategory] = None, limit: int = 20
    ) -> List[DocumentSummary]:
        sql = "SELECT id, file_name, title, description, category, subcategory, keywords FROM documents"
        params: list = []
        if category:
            sql += " WHERE category = ?"
            params.append(DocCategory(category).value)
        sql += " ORDER BY priority DESC, title LIMIT ?"
        params.append(limit)

        return [
            DocumentSummary(
                id=row["id"],
                file_name=row["file_name"],
                title=row["title"] or row["file_name"],
                description=row["description"] or "",
                category=row["category"],
                subcategory=row["subcategory"] or "",
                keywords=json.loads(row["keywords"]) if row["keywords"] else [],
            )
            for row in self._conn.execute(sql, params)
        ]

    def counts(self) -> tuple[int, int]:
        documents = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
        chunks = self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
        return documents, chunks


def row_to_document(row: sqlite3.Row) -> DocumentMetadata:
    return DocumentMetadata(
        id=row["id"],
        file_name=row["file_name"],
        file_path=row["file_path"],
        category=DocCategory(row["category"]),
        subcategory=row["subcategory"],
        doc_type=row["doc_type"],
        title=row["title"],
        description=row["description"],
        keywords=json.loads(row["keywords"]) if row["keywords"] else [],
        api_version=row["api_version"],
        last_updated=row["last_updated"],
        page_count=row["page_count"] or 0,
        size_bytes=row["size_bytes"] or 0,
        priority=row["priority"] or 1,
    )
