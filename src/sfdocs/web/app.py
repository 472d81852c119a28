"""FastAPI application exposing the sfdocs search operations."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from sfdocs.config import AppConfig
from sfdocs.index.cache import TTLResultCache
from sfdocs.index.expansion import expand_query
from sfdocs.index.indexer import Indexer
from sfdocs.index.search import CodeExample, CodeLanguage, SearchError, Searcher, SearchResult
from sfdocs.index.storage import SQLiteDocStore, StoreError
from sfdocs.models import CategoryCount, DocCategory, DocumentSummary, QueryExpansion

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="sfdocs", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class SearchPayload(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    category: Optional[DocCategory] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    max_results: int = Field(5, ge=1, le=20)


class ExpandedSearchPayload(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    expanded_terms: List[str] = Field(default_factory=list)
    category: Optional[DocCategory] = None
    max_results: int = Field(5, ge=1, le=20)


class ExpandPayload(BaseModel):
    query: str = Field(..., min_length=1, max_length=1000)
    context: Optional[str] = Field(None, max_length=500)


class ApiReferencePayload(BaseModel):
    api_name: str = Field(..., min_length=1, max_length=100)
    endpoint: Optional[str] = Field(None, max_length=200)


class ReleaseNotesPayload(BaseModel):
    release: Optional[str] = Field(None, max_length=50)
    feature: Optional[str] = Field(None, max_length=200)


class CodeExamplePayload(BaseModel):
    topic: str = Field(..., min_length=1, max_length=200)
    language: CodeLanguage = "apex"


class IndexPayload(BaseModel):
    paths: List[str]


class _State:
    db_path: Optional[Path] = None
    searcher: Optional[Searcher] = None


_state = _State()
_searcher_lock = threading.Lock()


def configure(db_path: Optional[Path]) -> None:
    """Point the API at an index file; the store is loaded on first use."""
    reset()
    _state.db_path = db_path


def reset() -> None:
    with _searcher_lock:
        if _state.searcher is not None:
            _state.searcher.store.close()
        _state.searcher = None


def _resolve_db_path() -> Path:
    if _state.db_path is not None:
        return _state.db_path
    return AppConfig().resolve_db_path(Path.cwd())


def get_searcher() -> Searcher:
    # Runs in the threadpool: only one request may load the store.
    with _searcher_lock:
        if _state.searcher is None:
            resolved_db = _resolve_db_path()
            if not resolved_db.exists():
                raise HTTPException(
                    status_code=404,
                    detail=f"Database not found at {resolved_db}. Build the index first.",
                )
            try:
                store = SQLiteDocStore.load(resolved_db)
            except StoreError as exc:
                raise HTTPException(status_code=500, detail=str(exc)) from exc
            config = AppConfig()
            _state.searcher = Searcher(
                store,
                cache=TTLResultCache(max_entries=config.cache_size, ttl=config.cache_ttl),
                default_max_results=config.max_results,
            )
        return _state.searcher


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/search")
async def search_documents(
    payload: SearchPayload, searcher: Searcher = Depends(get_searcher)
) -> dict[str, List[SearchResult]]:
    try:
        results = searcher.search(
            payload.query,
            category=payload.category,
            subcategory=payload.subcategory,
            max_results=payload.max_results,
        )
    except SearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"results": results}


@app.post("/search/expanded")
async def search_expanded(
    payload: ExpandedSearchPayload, searcher: Searcher = Depends(get_searcher)
) -> dict[str, Any]:
    try:
        results = searcher.search_expanded(
            payload.query,
            payload.expanded_terms,
            category=payload.category,
            max_results=payload.max_results,
        )
    except SearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"expanded_terms": payload.expanded_terms, "results": results}


@app.post("/api-reference")
async def api_reference(
    payload: ApiReferencePayload, searcher: Searcher = Depends(get_searcher)
) -> dict[str, List[SearchResult]]:
    try:
        results = searcher.api_reference(payload.api_name, payload.endpoint)
    except SearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"results": results}


@app.post("/release-notes")
async def release_notes(
    payload: ReleaseNotesPayload, searcher: Searcher = Depends(get_searcher)
) -> dict[str, List[SearchResult]]:
    if not payload.release and not payload.feature:
        raise HTTPException(status_code=400, detail="Either release or feature must be provided")
    try:
        results = searcher.release_notes(payload.release, payload.feature)
    except SearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"results": results}


@app.post("/code-examples")
async def code_examples(
    payload: CodeExamplePayload, searcher: Searcher = Depends(get_searcher)
) -> dict[str, List[CodeExample]]:
    try:
        examples = searcher.code_examples(payload.topic, payload.language)
    except SearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"examples": examples}


@app.post("/expand")
async def expand(payload: ExpandPayload) -> QueryExpansion:
    return expand_query(payload.query, payload.context)


@app.get("/categories")
async def list_categories(searcher: Searcher = Depends(get_searcher)) -> dict[str, Any]:
    stats: List[CategoryCount] = searcher.store.category_stats()
    return {
        "categories": [
            {
                "category": entry.category,
                "label": DocCategory(entry.category).label,
                "count": entry.count,
                "subcategories": [
                    {"name": name, "count": count} for name, count in entry.subcategories
                ],
            }
            for entry in stats
        ]
    }


@app.get("/documents")
async def list_documents(
    category: Optional[DocCategory] = None,
    limit: int = Query(20, ge=1, le=50),
    searcher: Searcher = Depends(get_searcher),
) -> dict[str, List[DocumentSummary]]:
    return {"documents": searcher.store.document_summaries(category, limit)}


@app.get("/documents/{doc_id}")
async def get_document(
    doc_id: int,
    section: Optional[str] = Query(None, max_length=200),
    searcher: Searcher = Depends(get_searcher),
) -> dict[str, Any]:
    document = searcher.store.get_document(doc_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document with ID {doc_id} not found")
    return {"document": document, "content": searcher.store.get_document_content(doc_id, section)}


def _run_index_job(paths: List[Path], config: AppConfig, resolved_db: Path) -> dict[str, Any]:
    indexer = Indexer(resolved_db, chunk_chars=config.chunk_chars, overlap=config.overlap)
    stats = indexer.build(paths)
    return {
        "documents_indexed": stats.documents_indexed,
        "documents_failed": stats.documents_failed,
        "total_chunks": stats.total_chunks,
        "failed_files": [str(path) for path in stats.failed_files],
    }


@app.post("/index")
async def index_documents(payload: IndexPayload) -> dict[str, Any]:
    if not payload.paths:
        raise HTTPException(status_code=400, detail="No path provided")

    resolved_paths: List[Path] = []
    for raw in payload.paths:
        clean_path = raw.strip().replace("\r", "").replace("\n", "")
        if not clean_path:
            continue
        if "\0" in clean_path:
            raise HTTPException(status_code=400, detail="Invalid path: contains null byte")
        path = Path(os.path.realpath(os.path.expanduser(clean_path)))
        if not path.is_dir():
            raise HTTPException(status_code=400, detail="Path must be a directory: %s" % clean_path)
        resolved_paths.append(path)

    if not resolved_paths:
        raise HTTPException(status_code=400, detail="No path provided")

    resolved_db = _resolve_db_path()
    try:
        stats = await asyncio.to_thread(_run_index_job, resolved_paths, AppConfig(), resolved_db)
    except StoreError as exc:
        LOGGER.exception("Indexing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    # Next request reloads the freshly written index.
    reset()
    return {"status": "ok", "db": str(resolved_db), "stats": stats}
