"""Abstract base class for vector stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from enghien.vectorstore.schemas import RetrievalFilter, SearchResult, VectorRecord


class VectorStore(ABC):
    """Interface for vector store backends."""

    @abstractmethod
    def add(self, records: list[VectorRecord]) -> list[int]:
        """Insert records into the store.

        Args:
            records: Chunks with embeddings.

        Returns:
            The ids assigned to the records, in input order.
        """

    @abstractmethod
    def search(
        self,
        query_embedding: list[float],
        threshold: float = 0.0,
        count: int = 8,
        metadata_filter: RetrievalFilter | None = None,
    ) -> list[SearchResult]:
        """Nearest-neighbour search.

        Args:
            query_embedding: The query vector.
            threshold: Only results with similarity strictly above it.
            count: Maximum results to return.
            metadata_filter: Optional conjunctive equality filter.

        Returns:
            ``SearchResult`` list sorted by similarity (highest first).
            Empty when nothing passes the threshold.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of records in the store."""

    @abstractmethod
    def clear(self) -> None:
        """Delete all records and restart id assignment."""

    def close(self) -> None:
        """Release connections held by the store."""

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
