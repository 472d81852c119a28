"""Command line interface for sfdocs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sfdocs.config import AppConfig
from sfdocs.index.cache import TTLResultCache
from sfdocs.index.expansion import expand_query
from sfdocs.index.indexer import Indexer, find_pdfs
from sfdocs.index.search import CODE_LANGUAGES, SearchError, Searcher, SearchResult
from sfdocs.index.storage import SQLiteDocStore, StoreError
from sfdocs.models import DocCategory

console = Console()
app = typer.Typer(help="sfdocs - keyword search over Salesforce developer PDFs")

T = TypeVar("T")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _resolve_db(db: Optional[Path]) -> Path:
    config = AppConfig(db_path=db)
    return config.resolve_db_path(Path.cwd())


def _open_store(db: Optional[Path]) -> SQLiteDocStore:
    resolved_db = _resolve_db(db)
    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")
    try:
        return SQLiteDocStore.load(resolved_db)
    except StoreError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def index(
    inputs: Optional[List[Path]] = typer.Argument(
        None, help="Paths with PDFs to index (defaults to docs/pdfs and docs/release-notes).",
    ),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    chunk_chars: int = typer.Option(AppConfig().chunk_chars, help="Chunk size in characters"),
    overlap: int = typer.Option(AppConfig().overlap, help="Chunk overlap"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rebuild the index from one or more paths containing PDF files."""
    _setup_logging(verbose)
    config = AppConfig(db_path=db, chunk_chars=chunk_chars, overlap=overlap)
    resolved_db = config.resolve_db_path(Path.cwd())
    paths = list(inputs) if inputs else [Path.cwd() / p for p in config.pdf_dirs]

    if not find_pdfs(paths):
        console.print("[yellow]No PDFs found.[/yellow]")
        return

    console.print(f"Indexing into [bold]{resolved_db}[/bold]...")
    indexer = Indexer(resolved_db, chunk_chars=config.chunk_chars, overlap=config.overlap)
    try:
        stats = indexer.build(paths)
    except StoreError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(
        f"Documents indexed: {stats.documents_indexed}, failed: {stats.documents_failed}, "
        f"total chunks: {stats.total_chunks}"
    )

def _run_search(db: Optional[Path], run: Callable[[Searcher], T]) -> T:
    """Open the index, run one lookup and close the store again."""
    config = AppConfig(db_path=db)
    store = _open_store(db)
    searcher = Searcher(
        store, cache=TTLResultCache(max_entries=config.cache_size, ttl=config.cache_ttl)
    )
    try:
        return run(searcher)
    except SearchError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()


def _print_results(results: List[SearchResult]) -> None:
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    intent = results[0].detected_intent
    if intent is not None:
        console.print(f"Detected topic: [bold]{intent.description}[/bold] ({intent.confidence})")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Match")
    table.add_column("Document")
    table.add_column("Section")
    table.add_column("Snippet")

    for result in results:
        snippet = (result.highlights[0] if result.highlights else result.chunk).replace("\n", " ")
        table.add_row(
            f"{result.score:.2f}",
            f"{result.match_density:.0%}",
            escape(result.document.title),
            result.section_title or "",
            escape(snippet[:180]),
        )

    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    category: Optional[DocCategory] = typer.Option(None, help="Restrict to a category"),
    subcategory: Optional[str] = typer.Option(None, help="Restrict to a subcategory"),
    max_results: int = typer.Option(AppConfig().max_results, min=1, max=20, help="Number of results"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the documentation index."""
    _setup_logging(verbose)
    results = _run_search(
        db,
        lambda searcher: searcher.search(
            query, category=category, subcategory=subcategory, max_results=max_results
        ),
    )
    _print_results(results)


@app.command("api-ref")
def api_ref(
    api_name: str = typer.Argument(..., help="API name, e.g. 'REST API' or 'Bulk API'"),
    endpoint: Optional[str] = typer.Option(None, help="Endpoint or method to look up"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Look up API reference documentation."""
    _print_results(_run_search(db, lambda searcher: searcher.api_reference(api_name, endpoint)))


@app.command("release-notes")
def release_notes(
    release: Optional[str] = typer.Option(None, help="Release name, e.g. 'Winter 25'"),
    feature: Optional[str] = typer.Option(None, help="Feature to look for"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Search the release notes."""
    if not release and not feature:
        raise typer.BadParameter("Either --release or --feature must be provided")
    _print_results(_run_search(db, lambda searcher: searcher.release_notes(release, feature)))


@app.command("code-example")
def code_example(
    topic: str = typer.Argument(..., help="What the example should show"),
    language: str = typer.Option(
        "apex", help=f"One of: {', '.join(CODE_LANGUAGES)}"
    ),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Find code examples and print the code blocks they contain."""
    if language not in CODE_LANGUAGES:
        raise typer.BadParameter(f"Unsupported language: {language}")

    examples = _run_search(db, lambda searcher: searcher.code_examples(topic, language))
    if not examples:
        console.print("[yellow]No matches found.[/yellow]")
        return

    for example in examples:
        title = example.result.section_title or example.result.document.title
        console.print(f"[bold]{escape(title)}[/bold] ({escape(example.result.document.file_name)})")
        if not example.blocks:
            console.print(escape(example.result.chunk))
        for block in example.blocks:
            console.print(f"--- {block.language or language} ---")
            console.print(escape(block.code))


@app.command()
def expand(
    query: str = typer.Argument(..., help="Query text"),
    context: Optional[str] = typer.Option(None, help="Additional context for the query"),
) -> None:
    """Show the search terms a query expands to."""
    expansion = expand_query(query, context)
    console.print(f"Confidence: [bold]{expansion.confidence}[/bold]")
    if expansion.suggested_category:
        console.print(f"Suggested category: {expansion.suggested_category}")
    if expansion.detected_concepts:
        console.print(f"Detected concepts: {', '.join(expansion.detected_concepts)}")
    console.print(f"Expanded terms: {', '.join(expansion.expanded_terms)}")
    console.print(expansion.reasoning)


@app.command()
def categories(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List documentation categories with document counts."""
    store = _open_store(db)
    try:
        stats = store.category_stats()
    finally:
        store.close()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category")
    table.add_column("Documents")
    table.add_column("Subcategories")
    for entry in stats:
        label = DocCategory(entry.category).label
        subs = ", ".join(f"{name or 'general'} ({count})" for name, count in entry.subcategories)
        table.add_row(label, str(entry.count), subs)
    console.print(table)


@app.command()
def document(
    doc_id: Optional[int] = typer.Option(None, "--id", help="Document id"),
    name: Optional[str] = typer.Option(None, "--name", help="Document file name (or part of it)"),
    section: Optional[str] = typer.Option(None, help="Only sections whose title contains this"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Print the text of one indexed document."""
    if doc_id is None and not name:
        raise typer.BadParameter("Either --id or --name must be provided")

    store = _open_store(db)
    try:
        doc = store.get_document(doc_id) if doc_id is not None else store.get_document_by_file_name(name)
        if doc is None:
            console.print("[yellow]Document not found.[/yellow]")
            raise typer.Exit(code=1)
        content = store.get_document_content(doc.id, section)
    finally:
        store.close()

    console.print(f"[bold]{escape(doc.title)}[/bold] ({escape(doc.file_name)}, {doc.category.value})")
    console.print(escape(content) if content else "[yellow]No matching content.[/yellow]")


@app.command()
def summaries(
    category: Optional[DocCategory] = typer.Option(None, help="Restrict to a category"),
    limit: int = typer.Option(20, min=1, max=50, help="Number of documents"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Browse indexed documents by priority."""
    store = _open_store(db)
    try:
        rows = store.document_summaries(category, limit)
    finally:
        store.close()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Keywords")
    for row in rows:
        table.add_row(
            str(row.id), row.title, f"{row.category}/{row.subcategory}", ", ".join(row.keywords)
        )
    console.print(table)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from sfdocs.web.app import app as web_app, configure

    resolved_db = _resolve_db(db)
    if not resolved_db.exists():
        console.print("[yellow]Warning: database not found, searches will fail.[/yellow]")
    configure(resolved_db)

    console.print(f"Starting API on http://{host}:{port} (database: {resolved_db})")
    uvicorn.run(web_app, host=host, port=port, reload=False, log_level="info")
