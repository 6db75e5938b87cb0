"""Data models for vector store operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from enghien.chunking.schemas import ChunkMetadata


@dataclass
class VectorRecord:
    """A chunk with its embedding, ready for storage. The store assigns the id."""

    text: str
    embedding: list[float]
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchResult:
    """A single passage returned by a similarity search.

    ``similarity`` is cosine similarity (``1 - cosine_distance``).
    """

    id: int
    text: str
    similarity: float
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass
class RetrievalFilter:
    """Restrict search results by metadata fields.

    All specified fields must match exactly (AND logic).
    """

    book: str | None = None
    chapter: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()

    def matches(self, meta: ChunkMetadata) -> bool:
        """Check if a chunk's metadata matches this filter."""
        if self.book and meta.book != self.book:
            return False
        return not (self.chapter and meta.chapter != self.chapter)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dict of the fields that are set."""
        d: dict[str, Any] = {}
        if self.book:
            d["book"] = self.book
        if self.chapter:
            d["chapter"] = self.chapter
        return d
