"""Keyword search over the chunk store.

Strategy:

1. Detect the query intent (e.g. "apex trigger" -> Apex Development).
2. Without an explicit filter and with medium/high confidence, restrict the
   search to the detected subcategory.
3. Match chunks containing any query term, sampled by document priority, and
   rank them by match density.
4. When the automatic filter yields too few results, widen to the category,
   then to the whole corpus.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from dataclasses import dataclass, field, replace
from typing import List, Literal, Optional, Sequence, get_args

from sfdocs.index.cache import ResultCache, TTLResultCache
from sfdocs.index.intent import describe_intent, detect_intent
from sfdocs.index.storage import SQLiteDocStore, row_to_document
from sfdocs.models import DocCategory, DocumentMetadata, IntentSummary
from sfdocs.utils.text import CodeBlock, extract_code_blocks

LOGGER = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500
FILTERED_SAMPLE_MIN = 100
UNFILTERED_SAMPLE_MIN = 500
HIGHLIGHT_CONTEXT = 100
MAX_HIGHLIGHTS = 2

CodeLanguage = Literal["apex", "lwc", "visualforce", "soql", "javascript", "formula"]
CODE_LANGUAGES: tuple[str, ...] = get_args(CodeLanguage)

_STRIPPED_CHARS_RE = re.compile(r"[<>\x00-\x08\x0e-\x1f]")
_WHITESPACE_CONTROLS_RE = re.compile(r"[\t\n\x0b\x0c\r]")


class SearchError(RuntimeError):
    """Raised when the store fails while a search is running."""


@dataclass(slots=True)
class SearchResult:
    document: DocumentMetadata
    chunk: str
    score: float
    match_density: float
    section_title: Optional[str] = None
    highlights: List[str] = field(default_factory=list)
    detected_intent: Optional[IntentSummary] = None


@dataclass(slots=True)
class CodeExample:
    result: SearchResult
    blocks: List[CodeBlock]


def sanitize_query(query: str) -> str:
    """Truncate and strip characters that have no place in a search query."""
    query = query[:MAX_QUERY_LENGTH]
    query = _WHITESPACE_CONTROLS_RE.sub(" ", query)
    return _STRIPPED_CHARS_RE.sub("", query).strip()


def query_terms(query: str) -> List[str]:
    """Lowercase, distinct whitespace-separated terms longer than one character."""
    return list(dict.fromkeys(word for word in query.lower().split() if len(word) > 1))


def score_chunk(content_lower: str, terms: Sequence[str], priority: int) -> tuple[float, float]:
    """Return ``(score, match_density)`` for one candidate chunk."""
    found = 0
    occurrences = 0
    for term in terms:
        count = content_lower.count(term)
        if count:
            found += 1
            occurrences += count

    match_density = found / len(terms) if terms else 0.0
    occurrence_bonus = min(occurrences * 0.1, 2.0)
    return match_density * 10 + priority * 0.2 + occurrence_bonus, match_density


def extract_highlights(content: str, query: str) -> List[str]:
    """Snippets of surrounding text for the first query words found in ``content``."""
    if not content:
        return []

    content_lower = content.lower()
    highlights: List[str] = []
    for word in (w for w in query.lower().split() if len(w) > 2):
        index = content_lower.find(word)
        if index == -1:
            continue
        start = max(0, index - HIGHLIGHT_CONTEXT)
        end = min(len(content), index + len(word) + HIGHLIGHT_CONTEXT)
        snippet = content[start:end]
        if start > 0:
            snippet = "..." + snippet
        if end < len(content):
            snippet = snippet + "..."
        highlights.append(snippet)
        if len(highlights) >= MAX_HIGHLIGHTS:
            break
    return highlights


def _copy_results(results: Sequence[SearchResult]) -> List[SearchResult]:
    """Copies that callers may modify without touching the cached originals."""
    return [
        replace(
            result,
            document=replace(result.document, keywords=list(result.document.keywords)),
            highlights=list(result.highlights),
            detected_intent=replace(result.detected_intent) if result.detected_intent else None,
        )
        for result in results
    ]


class Searcher:
    """High-level API to query the chunk store."""

    def __init__(
        self,
        store: SQLiteDocStore,
        *,
        cache: ResultCache[List[SearchResult]] | None = None,
        default_max_results: int = 5,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else TTLResultCache()
        self.default_max_results = default_max_results

    def search(
        self,
        query: str,
        *,
        category: DocCategory | str | None = None,
        subcategory: str | None = None,
        max_results: int | None = None,
    ) -> List[SearchResult]:
        max_results = max_results if max_results is not None else self.default_max_results
        if max_results < 1:
            raise ValueError("max_results must be at least 1")
        category_value = DocCategory(category).value if category else None

        sanitized = sanitize_query(query)
        terms = query_terms(sanitized)
        if not terms:
            return []

        intent = detect_intent(sanitized)
        effective_category = category_value
        effective_subcategory = subcategory or None
        intent_summary: IntentSummary | None = None
        if (
            not category_value
            and not subcategory
            and intent.confidence != "low"
            and intent.subcategory
        ):
            effective_category = intent.category
            effective_subcategory = intent.subcategory
            intent_summary = IntentSummary(
                category=intent.category,
                subcategory=intent.subcategory,
                confidence=intent.confidence,
                description=describe_intent(intent),
            )
            LOGGER.debug("Applying detected intent filter: %s", intent_summary.description)

        cache_key = json.dumps(
            {
                "query": sanitized,
                "options": {
                    "category": category_value,
                    "subcategory": subcategory,
                    "max_results": max_results,
                },
                "effective_category": effective_category,
                "effective_subcategory": effective_subcategory,
            },
            sort_keys=True,
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            return _copy_results(cached)

        filtered = bool(effective_category or effective_subcategory)
        unfiltered_sample = max(max_results * 50, UNFILTERED_SAMPLE_MIN)
        sample_size = max(max_results * 10, FILTERED_SAMPLE_MIN) if filtered else unfiltered_sample

        try:
            results = self._execute(
                terms, sanitized, effective_category, effective_subcategory, sample_size, intent_summary
            )
            if intent_summary is not None and len(results) < max_results:
                widened = self._execute(
                    terms, sanitized, effective_category, None, sample_size, intent_summary
                )
                if len(widened) > len(results):
                    results = widened
                if len(results) < max_results:
                    unfiltered = self._execute(
                        terms, sanitized, None, None, unfiltered_sample, intent_summary
                    )
                    if len(unfiltered) > len(results):
                        results = unfiltered
        except sqlite3.Error as exc:
            LOGGER.error("Search error: %s", exc)
            raise SearchError(f"Search failed: {exc}") from exc

        top_results = results[:max_results]
        self.cache.set(cache_key, top_results)
        return _copy_results(top_results)

    def _execute(
        self,
        terms: Sequence[str],
        query: str,
        category: str | None,
        subcategory: str | None,
        sample_size: int,
        intent_summary: IntentSummary | None,
    ) -> List[SearchResult]:
        rows = self.store.match_chunks(
            terms, category=category, subcategory=subcategory, limit=sample_size
        )
        results: List[SearchResult] = []
        for row in rows:
            document = row_to_document(row)
            score, match_density = score_chunk(row["content_lower"] or "", terms, document.priority)
            results.append(
                SearchResult(
                    document=document,
                    chunk=row["content"],
                    score=score,
                    match_density=match_density,
                    section_title=row["section_title"],
                    highlights=extract_highlights(row["content"], query),
                    detected_intent=intent_summary,
                )
            )
        # Stable sort: equal scores keep the priority-then-chunk order of the sample.
        results.sort(key=lambda result: result.score, reverse=True)
        return results

    def search_expanded(
        self,
        query: str,
        expanded_terms: Sequence[str] | None = None,
        *,
        category: DocCategory | str | None = None,
        max_results: int | None = None,
    ) -> List[SearchResult]:
        """Search the query together with terms produced by ``expand_query``."""
        combined = " ".join([query, *expanded_terms]) if expanded_terms else query
        return self.search(combined, category=category, max_results=max_results)

    def api_reference(self, api_name: str, endpoint: str | None = None) -> List[SearchResult]:
        query = f"{api_name} {endpoint}" if endpoint else api_name
        return self.search(query, category=DocCategory.APIS, max_results=5)

    def release_notes(
        self, release: str | None = None, feature: str | None = None
    ) -> List[SearchResult]:
        query = " ".join(part for part in (release, feature) if part)
        return self.search(query, category=DocCategory.RELEASE_NOTES, max_results=5)

    def code_examples(self, topic: str, language: str = "apex") -> List[CodeExample]:
        if language not in CODE_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        results = self.search(
            f"{language} {topic} example code", category=DocCategory.CORE_PLATFORM, max_results=5
        )
        return [CodeExample(result=result, blocks=extract_code_blocks(result.chunk)) for result in results]
