"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from enghien.vectorstore.schemas import RetrievalFilter, SearchResult

DEFAULT_THRESHOLD = 0.4
DEFAULT_COUNT = 8


@dataclass
class RetrievalConfig:
    """Configuration for a retrieval operation."""

    threshold: float = DEFAULT_THRESHOLD
    count: int = DEFAULT_COUNT
    metadata_filter: RetrievalFilter | None = None


@dataclass
class RetrievalResult:
    """Result of a retrieval operation."""

    query: str
    results: list[SearchResult] = field(default_factory=list)
    threshold: float = DEFAULT_THRESHOLD
    metadata_filter: RetrievalFilter | None = None

    @property
    def best_similarity(self) -> float | None:
        return self.results[0].similarity if self.results else None
