"""Retriever — embed query, then one thresholded nearest-neighbour query."""

from __future__ import annotations

import logging

from enghien.embeddings.base import EmbeddingProvider
from enghien.errors import ValidationError
from enghien.retrieval.schemas import (
    DEFAULT_COUNT,
    DEFAULT_THRESHOLD,
    RetrievalConfig,
    RetrievalResult,
)
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.schemas import RetrievalFilter, SearchResult

logger = logging.getLogger(__name__)


class Retriever:
    """Orchestrates embedding → search.

    A single round trip per query: one embedding call, one store query.
    Failures from either collaborator propagate unchanged; nothing is
    retried or cached here.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store

    def retrieve(
        self,
        query: str,
        config: RetrievalConfig | None = None,
    ) -> RetrievalResult:
        """Run a retrieval and return a structured result.

        Args:
            query: The natural-language question.
            config: Threshold, count and metadata filter.

        Returns:
            A ``RetrievalResult``; ``results`` is empty when nothing
            passes the threshold.

        Raises:
            ValidationError: If the query is blank.
        """
        cfg = config or RetrievalConfig()

        if not query or not query.strip():
            raise ValidationError("Query text is required")

        query_embedding = self.embedding_provider.embed_query(query)

        results = self.vector_store.search(
            query_embedding=query_embedding,
            threshold=cfg.threshold,
            count=cfg.count,
            metadata_filter=cfg.metadata_filter,
        )

        logger.info(
            "Retrieved %d results (threshold=%.2f, count=%d, filter=%s)",
            len(results),
            cfg.threshold,
            cfg.count,
            cfg.metadata_filter.to_dict() if cfg.metadata_filter else {},
        )

        return RetrievalResult(
            query=query,
            results=results,
            threshold=cfg.threshold,
            metadata_filter=cfg.metadata_filter,
        )

    def search(
        self,
        query_text: str,
        threshold: float = DEFAULT_THRESHOLD,
        count: int = DEFAULT_COUNT,
        metadata_filter: RetrievalFilter | None = None,
    ) -> list[SearchResult]:
        """Return ranked passages for *query_text*, most similar first."""
        config = RetrievalConfig(
            threshold=threshold,
            count=count,
            metadata_filter=metadata_filter,
        )
        return self.retrieve(query_text, config=config).results
