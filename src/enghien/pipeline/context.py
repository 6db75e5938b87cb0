"""Context assembly and source display.

``assemble_context`` renders retrieved passages, in order, into the block
handed to the generator. ``dedupe_sources`` / ``format_sources`` are for
showing sources to a reader: one entry per (book, chapter, first page).
"""

from __future__ import annotations

from collections.abc import Sequence

from enghien.chunking.schemas import ChunkMetadata
from enghien.vectorstore.schemas import SearchResult

NO_CONTEXT_FOUND = "Aucun passage pertinent n'a été trouvé dans le livre."

BLOCK_SEPARATOR = "\n\n---\n\n"


def format_pages(meta: ChunkMetadata) -> str | None:
    """``p. 12`` or ``p. 12-14``; ``None`` when no page is known."""
    if not meta.page_start and not meta.page_end:
        return None
    if meta.page_start == meta.page_end:
        return f"p. {meta.page_start}"
    return f"p. {meta.page_start}-{meta.page_end}"


def format_location(
    meta: ChunkMetadata,
    chapter_label: str = "Chapitre",
    include_section: bool = True,
) -> str:
    """Human-readable citation, e.g. ``Livre I, Chapitre III, p. 120-121``."""
    parts = [f"Livre {meta.book}"]
    if meta.chapter:
        parts.append(f"{chapter_label} {meta.chapter}")
    if include_section and meta.section:
        parts.append(meta.section)
    pages = format_pages(meta)
    if pages:
        parts.append(pages)
    return ", ".join(parts)


def assemble_context(results: Sequence[SearchResult]) -> str:
    """Format passages as numbered, located extracts for the prompt.

    The output is passed verbatim to the generator; nothing is truncated.
    """
    if not results:
        return NO_CONTEXT_FOUND

    blocks = [
        f"[Extrait {i}] ({format_location(r.metadata)})\n{r.text.strip()}"
        for i, r in enumerate(results, 1)
    ]
    return BLOCK_SEPARATOR.join(blocks)


def dedupe_sources(results: Sequence[SearchResult]) -> list[SearchResult]:
    """Keep the most similar result per (book, chapter, page_start).

    Returns the survivors sorted by similarity, highest first.
    """
    best: dict[tuple[str, str, int], SearchResult] = {}
    for r in results:
        key = (r.metadata.book, r.metadata.chapter, r.metadata.page_start)
        current = best.get(key)
        if current is None or r.similarity > current.similarity:
            best[key] = r

    return sorted(best.values(), key=lambda r: r.similarity, reverse=True)


def format_sources(results: Sequence[SearchResult]) -> str:
    """Bullet list of deduplicated source locations for display."""
    return "\n".join(
        f"• {format_location(r.metadata, chapter_label='Chap.', include_section=False)}"
        for r in dedupe_sources(results)
    )
