"""Chunk-list files and summary statistics.

The segmentation run writes a JSON array of ``{content, metadata}`` objects;
the ingestion run reads it back.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from enghien.chunking.schemas import Chunk
from enghien.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ChunkStats:
    """Size and distribution summary for a chunk list."""

    count: int = 0
    avg_size: float = 0.0
    min_size: int = 0
    max_size: int = 0
    per_book: dict[str, int] = field(default_factory=dict)


def save_chunks(chunks: list[Chunk], path: str | Path) -> Path:
    """Write chunks as an indented UTF-8 JSON array."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as fh:
        json.dump([c.to_dict() for c in chunks], fh, ensure_ascii=False, indent=2)
    logger.info("Saved %d chunks to %s", len(chunks), p)
    return p


def load_chunks(path: str | Path) -> list[Chunk]:
    """Read a chunk list written by :func:`save_chunks`."""
    p = Path(path)
    try:
        with open(p, encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Chunk file {p} is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise ValidationError(f"Chunk file {p} must contain a JSON array")

    try:
        chunks = [Chunk.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed chunk entry in {p}: {exc}") from exc

    logger.info("Loaded %d chunks from %s", len(chunks), p)
    return chunks


def chunk_stats(chunks: list[Chunk]) -> ChunkStats:
    if not chunks:
        return ChunkStats()

    sizes = [len(c.content) for c in chunks]
    per_book = Counter(c.metadata.book for c in chunks)
    return ChunkStats(
        count=len(chunks),
        avg_size=sum(sizes) / len(sizes),
        min_size=min(sizes),
        max_size=max(sizes),
        per_book=dict(per_book),
    )
