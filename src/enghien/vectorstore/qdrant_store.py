"""Qdrant vector store with native payload filtering.

Requires the ``qdrant`` extra. Runs against a Qdrant server (``url``), an
on-disk local collection (``path``) or in memory.
"""

from __future__ import annotations

import logging
from enghien.chunking.schemas import ChunkMetadata
from enghien.errors import StoreError
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.schemas import RetrievalFilter, SearchResult, VectorRecord

logger = logging.getLogger(__name__)

PROVIDER = "qdrant"


class QdrantStore(VectorStore):
    """Qdrant-backed vector store. Point ids are sequential integers from 1."""

    def __init__(
        self,
        collection_name: str = "enghien_documents",
        dimension: int = 1536,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ):
        try:
            from qdrant_client import QdrantClient, models
            from qdrant_client.http.exceptions import (
                ResponseHandlingException,
                UnexpectedResponse,
            )
        except ImportError as exc:
            raise ImportError(
                "qdrant-client required: pip install enghien-rag[qdrant]"
            ) from exc

        self._models = models
        self._client_errors = (UnexpectedResponse, ResponseHandlingException)
        self._collection_name = collection_name
        self._dimension = dimension

        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            self._client = QdrantClient(":memory:")

        if not self._client.collection_exists(collection_name):
            self._create_collection()

        self._next_id = self.count() + 1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> list[int]:
        if not records:
            return []

        ids = list(range(self._next_id, self._next_id + len(records)))
        points = []
        for point_id, record in zip(ids, records, strict=True):
            payload = record.metadata.to_dict()
            payload["text"] = record.text
            points.append(self._models.PointStruct(
                id=point_id,
                vector=record.embedding,
                payload=payload,
            ))

        try:
            self._client.upsert(collection_name=self._collection_name, points=points)
        except self._client_errors as exc:
            raise StoreError(f"Insert failed: {exc}", provider_name=PROVIDER) from exc

        self._next_id += len(records)
        logger.info("QdrantStore added %d records", len(records))
        return ids

    def search(
        self,
        query_embedding: list[float],
        threshold: float = 0.0,
        count: int = 8,
        metadata_filter: RetrievalFilter | None = None,
    ) -> list[SearchResult]:
        if count <= 0:
            return []

        query_filter = None
        if metadata_filter and not metadata_filter.is_empty:
            query_filter = self._models.Filter(must=[
                self._models.FieldCondition(
                    key=key,
                    match=self._models.MatchValue(value=value),
                )
                for key, value in metadata_filter.to_dict().items()
            ])

        try:
            response = self._client.query_points(
                collection_name=self._collection_name,
                query=query_embedding,
                limit=count,
                query_filter=query_filter,
                score_threshold=threshold,
                with_payload=True,
            )
        except self._client_errors as exc:
            raise StoreError(f"Query failed: {exc}", provider_name=PROVIDER) from exc

        results: list[SearchResult] = []
        for point in response.points:
            # score_threshold is inclusive; the contract is strictly greater.
            if point.score is None or point.score <= threshold:
                continue
            payload = dict(point.payload or {})
            text = payload.pop("text", "")
            results.append(SearchResult(
                id=int(point.id),
                text=text,
                similarity=float(point.score),
                metadata=ChunkMetadata.from_dict(payload),
            ))

        return results

    def count(self) -> int:
        try:
            return self._client.count(self._collection_name, exact=True).count
        except self._client_errors as exc:
            raise StoreError(f"Count failed: {exc}", provider_name=PROVIDER) from exc

    def clear(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._create_collection()
        self._next_id = 1

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )
        logger.info(
            "Created Qdrant collection '%s' (dim=%d)", self._collection_name, self._dimension,
        )
