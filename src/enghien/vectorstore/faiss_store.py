"""FAISS vector store — local, zero infrastructure.

Inner product over L2-normalised vectors gives cosine similarity. Metadata
lives in a parallel dict used for filtering. Ids start at 1 and follow
insertion order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from enghien.chunking.schemas import ChunkMetadata
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.schemas import RetrievalFilter, SearchResult, VectorRecord

logger = logging.getLogger(__name__)


class FAISSStore(VectorStore):
    """FAISS-backed vector store with metadata filtering."""

    def __init__(self, dimension: int = 1536, path: str | None = None):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError(
                "faiss-cpu required: pip install enghien-rag[faiss]"
            ) from exc

        self._faiss = faiss
        self._dimension = dimension
        self._index = faiss.IndexFlatIP(dimension)
        self._records: dict[int, dict] = {}  # faiss position -> {id, text, metadata}
        self._path = path

        if path and (Path(path) / "index.faiss").exists():
            self.load(path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> list[int]:
        if not records:
            return []

        vectors = np.array([r.embedding for r in records], dtype=np.float32)
        self._faiss.normalize_L2(vectors)

        start = self._index.ntotal
        self._index.add(vectors)

        ids: list[int] = []
        for i, record in enumerate(records):
            position = start + i
            self._records[position] = {
                "id": position + 1,
                "text": record.text,
                "metadata": record.metadata,
            }
            ids.append(position + 1)

        logger.info("FAISSStore added %d records (total: %d)", len(records), self.count())
        return ids

    def search(
        self,
        query_embedding: list[float],
        threshold: float = 0.0,
        count: int = 8,
        metadata_filter: RetrievalFilter | None = None,
    ) -> list[SearchResult]:
        if self._index.ntotal == 0 or count <= 0:
            return []

        query_vec = np.array([query_embedding], dtype=np.float32)
        self._faiss.normalize_L2(query_vec)

        # Filtering happens after ranking, so scan everything when filtered.
        filtering = metadata_filter is not None and not metadata_filter.is_empty
        fetch_k = self._index.ntotal if filtering else min(count, self._index.ntotal)

        scores, positions = self._index.search(query_vec, fetch_k)

        results: list[SearchResult] = []
        for score, position in zip(scores[0], positions[0], strict=True):
            if position == -1:
                continue
            if score <= threshold:
                break
            record = self._records.get(int(position))
            if record is None:
                continue
            if filtering and not metadata_filter.matches(record["metadata"]):
                continue

            results.append(SearchResult(
                id=record["id"],
                text=record["text"],
                similarity=float(score),
                metadata=record["metadata"],
            ))

            if len(results) >= count:
                break

        return results

    def count(self) -> int:
        return self._index.ntotal

    def clear(self) -> None:
        self._index = self._faiss.IndexFlatIP(self._dimension)
        self._records.clear()

    def close(self) -> None:
        if self._path:
            self.save(self._path)

    def save(self, path: str) -> None:
        """Save FAISS index and metadata to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / "index.faiss"))

        serializable = {
            str(position): {
                "id": record["id"],
                "text": record["text"],
                "metadata": record["metadata"].to_dict(),
            }
            for position, record in self._records.items()
        }
        with open(p / "metadata.json", "w", encoding="utf-8") as f:
            json.dump({"records": serializable}, f, ensure_ascii=False)

        logger.info("FAISSStore saved to %s (%d records)", path, self.count())

    def load(self, path: str) -> None:
        """Load FAISS index and metadata from disk."""
        p = Path(path)

        self._index = self._faiss.read_index(str(p / "index.faiss"))

        with open(p / "metadata.json", encoding="utf-8") as f:
            data = json.load(f)

        self._records = {
            int(position): {
                "id": record["id"],
                "text": record["text"],
                "metadata": ChunkMetadata.from_dict(record["metadata"]),
            }
            for position, record in data["records"].items()
        }
        logger.info("FAISSStore loaded from %s (%d records)", path, self.count())
