"""CLI entry point — Typer app for enghien commands.

Usage:
    enghien init-db
    enghien chunk data/histoire_enghien_matthieu_fulltext.txt -o data/chunks.json
    enghien ingest data/chunks.json
    enghien search "seigneurs d'Enghien" --book I
    enghien ask "Quel était le rôle du bailli ?"
    enghien health
    enghien status
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from enghien.errors import EnghienError

app = typer.Typer(
    name="enghien",
    help="Enghien RAG — chunk, ingest and query the history of Enghien.",
    no_args_is_help=True,
)

console = Console()

_INPUT_PATH = typer.Argument(..., help="Raw OCR full-text file")
_CHUNKS_PATH = typer.Argument(..., help="Chunk list written by 'enghien chunk'")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _fail(exc: EnghienError) -> NoReturn:
    console.print(f"[bold red]Error:[/] {exc}")
    raise typer.Exit(code=1)


def _filter(book: str | None, chapter: str | None):
    from enghien.vectorstore.schemas import RetrievalFilter

    mf = RetrievalFilter(book=book, chapter=chapter)
    return None if mf.is_empty else mf


@app.command()
def chunk(
    path: Annotated[Path, _INPUT_PATH],
    output: Path = typer.Option(
        Path("data/chunks.json"), "--output", "-o", help="Where to write the chunk list",
    ),
) -> None:
    """Clean the OCR text and split it into chunks."""
    from enghien.chunking.builder import ChunkBuilder
    from enghien.chunking.normalizer import normalize
    from enghien.chunking.persistence import chunk_stats, save_chunks
    from enghien.config import load_settings

    if not path.exists():
        console.print(f"[bold red]File not found:[/] {path}")
        raise typer.Exit(code=1)

    settings = load_settings()
    raw = path.read_text(encoding="utf-8")
    console.print(f"\n[bold]Source:[/] {path.name} ({len(raw) / 1024 / 1024:.2f} MB)")

    cleaned = normalize(raw)
    builder = ChunkBuilder(
        min_chunk_size=settings.chunking.min_chunk_size,
        max_chunk_size=settings.chunking.max_chunk_size,
        overlap_size=settings.chunking.overlap_size,
        min_emit_size=settings.chunking.min_emit_size,
    )
    chunks = builder.build(cleaned)
    save_chunks(chunks, output)

    stats = chunk_stats(chunks)
    table = Table(title="Chunks")
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Count", str(stats.count))
    table.add_row("Average size", f"{stats.avg_size:.0f} chars")
    table.add_row("Min size", f"{stats.min_size} chars")
    table.add_row("Max size", f"{stats.max_size} chars")
    for book, count in stats.per_book.items():
        table.add_row(f"Livre {book}", str(count))
    console.print(table)

    if chunks:
        console.print("\n[bold]First chunk:[/]")
        console.print(chunks[0].content[:500] + "...", markup=False)
    console.print(f"\n[bold green]Written:[/] {output}")


@app.command()
def ingest(
    path: Annotated[Path, _CHUNKS_PATH],
    embedding_provider: str | None = typer.Option(
        None, "--embedding", "-e", help="Embedding provider",
    ),
    vector_store: str | None = typer.Option(
        None, "--store", "-s", help="Vector store backend",
    ),
) -> None:
    """Truncate the store, then embed and insert every chunk in batches."""
    from enghien.bootstrap import build_embedding_provider, build_vector_store
    from enghien.chunking.persistence import load_chunks
    from enghien.config import load_settings
    from enghien.pipeline.ingest import IngestPipeline

    settings = load_settings()
    try:
        chunks = load_chunks(path)
        emb = build_embedding_provider(settings, embedding_provider)
        store = build_vector_store(settings, vector_store, dimension=emb.dimension)
    except EnghienError as exc:
        _fail(exc)

    pipeline = IngestPipeline(
        embedding_provider=emb,
        vector_store=store,
        batch_size=settings.embedding.batch_size,
        batch_delay=settings.embedding.batch_delay,
        max_attempts=settings.embedding.max_attempts,
        retry_delay=settings.embedding.retry_delay,
    )

    try:
        with Progress(
            TextColumn("[bold]Ingesting"), BarColumn(), MofNCompleteColumn(), console=console,
        ) as progress:
            task = progress.add_task("ingest", total=len(chunks))
            result = pipeline.run(
                chunks,
                on_batch=lambda done, _total: progress.update(task, completed=done),
            )
        report = pipeline.verify()
    except EnghienError as exc:
        _fail(exc)
    finally:
        store.close()

    console.print(f"\n[bold green]Ingested:[/] {result.chunks_stored} chunks")
    console.print(f"  Time: {result.elapsed_seconds:.1f}s")
    console.print(f"  Speed: {result.chunks_per_second:.1f} chunks/s")
    console.print(f"  Stored passages: {report.stored_count}")
    console.print(f"\n[bold]Check query:[/] {report.query!r} → {len(report.results)} results")
    if report.results:
        best = report.results[0]
        console.print(
            f"  Best similarity: {best.similarity * 100:.1f}% "
            f"(Livre {best.metadata.book}, Chapitre {best.metadata.chapter})"
        )


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    threshold: float = typer.Option(0.4, "--threshold", "-t", help="Minimum similarity"),
    count: int = typer.Option(8, "--count", "-k", help="Maximum results"),
    book: str | None = typer.Option(None, "--book", "-b", help="Filter by book (I-IV)"),
    chapter: str | None = typer.Option(None, "--chapter", "-c", help="Filter by chapter"),
) -> None:
    """Show the passages most similar to a query."""
    from enghien.bootstrap import build_embedding_provider, build_vector_store
    from enghien.config import load_settings
    from enghien.pipeline.context import format_location
    from enghien.retrieval.retriever import Retriever

    settings = load_settings()
    try:
        emb = build_embedding_provider(settings)
        store = build_vector_store(settings, dimension=emb.dimension)
        try:
            results = Retriever(emb, store).search(
                query, threshold=threshold, count=count, metadata_filter=_filter(book, chapter),
            )
        finally:
            store.close()
    except EnghienError as exc:
        _fail(exc)

    if not results:
        console.print("[yellow]No passage above the threshold.[/]")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("#", style="cyan")
    table.add_column("Similarity")
    table.add_column("Location")
    table.add_column("Preview")
    for i, r in enumerate(results, 1):
        table.add_row(
            str(i), f"{r.similarity:.3f}", format_location(r.metadata), r.text[:80].replace("\n", " "),
        )
    console.print(table)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    book: str | None = typer.Option(None, "--book", "-b", help="Filter by book (I-IV)"),
    chapter: str | None = typer.Option(None, "--chapter", "-c", help="Filter by chapter"),
) -> None:
    """Answer a question from the book, with sources."""
    from enghien.bootstrap import (
        build_embedding_provider,
        build_llm_provider,
        build_vector_store,
    )
    from enghien.config import load_settings
    from enghien.pipeline.context import format_sources
    from enghien.pipeline.query import QueryPipeline

    settings = load_settings()
    try:
        emb = build_embedding_provider(settings)
        store = build_vector_store(settings, dimension=emb.dimension)
        llm = build_llm_provider(settings)
        pipeline = QueryPipeline(
            embedding_provider=emb,
            vector_store=store,
            llm_provider=llm,
            threshold=settings.retrieval.chat_threshold,
            count=settings.retrieval.count,
        )
        try:
            response = pipeline.answer(question, metadata_filter=_filter(book, chapter))
        finally:
            store.close()
    except EnghienError as exc:
        _fail(exc)

    console.print(f"\n[bold]Q:[/] {response.question}")
    console.print(f"\n[bold green]A:[/] {response.answer}")

    if response.sources:
        console.print(f"\n[bold]Sources ({len(response.sources)}):[/]")
        console.print(format_sources(response.sources))

    console.print(
        f"\n[dim]Model: {response.model} | Extracts: {response.retrieval_count}[/]",
    )


@app.command("init-db")
def init_db(
    reset: bool = typer.Option(
        False, "--reset", help="Drop the passage table first (deletes every passage)",
    ),
) -> None:
    """Create the pgvector extension, passage table and indexes."""
    from enghien.bootstrap import build_vector_store, embedding_dimension
    from enghien.config import load_settings

    settings = load_settings()
    dim = embedding_dimension(settings)
    try:
        store = build_vector_store(settings, "pgvector", dimension=dim)
        try:
            store.ensure_schema(reset=reset)
        finally:
            store.close()
    except EnghienError as exc:
        _fail(exc)

    action = "Recreated" if reset else "Ready"
    console.print(
        f"[bold green]{action}:[/] table {settings.vectorstore.table} (vector dim {dim})"
    )


@app.command()
def health() -> None:
    """Check the store and credentials; exit 1 when any check fails."""
    from enghien.config import load_settings
    from enghien.health import check_health

    report = check_health(load_settings())

    table = Table(title="Health")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    for name, check in report.checks.items():
        colour = "green" if check.ok else "red"
        table.add_row(name, f"[{colour}]{check.status}[/]", escape(check.detail))
    console.print(table)

    if not report.healthy:
        console.print("[bold red]unhealthy[/]")
        raise typer.Exit(code=1)
    console.print("[bold green]healthy[/]")


@app.command()
def status() -> None:
    """Show registered providers and the resolved settings."""
    from enghien import __version__
    from enghien.config import load_settings
    from enghien.embeddings.factory import available_providers as emb_providers
    from enghien.vectorstore.factory import available_stores

    settings = load_settings()
    console.print(f"\n[bold green]enghien-rag[/] v{__version__}\n")

    table = Table(title="Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_column("Configured")

    table.add_row("Embedding Providers", ", ".join(emb_providers()), settings.embedding.provider)
    table.add_row("Vector Stores", ", ".join(available_stores()), settings.vectorstore.backend)
    table.add_row("LLM", "openrouter", settings.llm.model)
    table.add_row(
        "Credentials",
        "OPENROUTER_API_KEY, DATABASE_URL",
        ", ".join(
            name for name in ("openrouter_api_key", "database_url")
            if getattr(settings.credentials, name)
        ) or "none",
    )

    console.print(table)


if __name__ == "__main__":
    app()
