"""Ingestion pipeline — chunks → embed (batched, retried) → store.

Batches run one at a time with a fixed pause in between to stay under the
embedding provider's rate limit. Each batch is persisted before the next
starts; a batch that still fails after its retries aborts the run, leaving
earlier batches in the store.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from enghien.chunking.builder import ChunkBuilder, chunk_text
from enghien.chunking.schemas import Chunk
from enghien.embeddings.base import EmbeddingProvider
from enghien.embeddings.retry import embed_with_retry
from enghien.errors import EnghienError
from enghien.pipeline.schemas import IngestResult, VerificationReport
from enghien.retrieval.retriever import Retriever
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.schemas import VectorRecord

logger = logging.getLogger(__name__)

BATCH_SIZE = 20
BATCH_DELAY = 0.5

VERIFY_QUERY = "seigneurs d'Enghien"


class IngestPipeline:
    """Orchestrates ingestion: truncate → embed in batches → insert."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY,
        max_attempts: int = 3,
        retry_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

    def run(
        self,
        chunks: list[Chunk],
        reset: bool = True,
        on_batch: Callable[[int, int], None] | None = None,
    ) -> IngestResult:
        """Embed and store *chunks*.

        Args:
            chunks: Chunk list from a segmentation run.
            reset: Truncate the store first (re-ingestion rebuilds everything).
            on_batch: Called as ``on_batch(stored_so_far, total)`` after each batch.

        Returns:
            An ``IngestResult`` with counts, ids and timing.
        """
        if reset:
            self.vector_store.clear()

        total = len(chunks)
        total_batches = math.ceil(total / self.batch_size) if total else 0
        ids: list[int] = []
        started = time.monotonic()

        for batch_num, start in enumerate(range(0, total, self.batch_size), 1):
            batch = chunks[start : start + self.batch_size]
            try:
                embeddings = embed_with_retry(
                    self.embedding_provider,
                    [c.content for c in batch],
                    max_attempts=self.max_attempts,
                    retry_delay=self.retry_delay,
                    sleep=self._sleep,
                )
                records = [
                    VectorRecord(text=c.content, embedding=emb, metadata=c.metadata)
                    for c, emb in zip(batch, embeddings, strict=True)
                ]
                ids.extend(self.vector_store.add(records))
            except EnghienError:
                logger.exception(
                    "Ingestion aborted at batch %d/%d (chunks %d to %d)",
                    batch_num, total_batches, start, start + len(batch) - 1,
                )
                raise

            logger.debug("Batch %d/%d stored (%d chunks)", batch_num, total_batches, len(batch))
            if on_batch is not None:
                on_batch(len(ids), total)

            if start + self.batch_size < total:
                self._sleep(self.batch_delay)

        elapsed = time.monotonic() - started
        logger.info(
            "Ingested %d chunks in %d batches (%.1fs)", len(ids), total_batches, elapsed,
        )

        return IngestResult(
            chunks_total=total,
            chunks_stored=len(ids),
            batches=total_batches,
            elapsed_seconds=elapsed,
            ids=ids,
        )

    def ingest_text(
        self,
        raw_text: str,
        builder: ChunkBuilder | None = None,
        reset: bool = True,
    ) -> IngestResult:
        """Normalise, chunk and ingest raw OCR text in one go."""
        return self.run(chunk_text(raw_text, builder), reset=reset)

    def verify(
        self,
        query: str = VERIFY_QUERY,
        threshold: float = 0.3,
        count: int = 3,
    ) -> VerificationReport:
        """Count stored passages and run one sample search."""
        retriever = Retriever(self.embedding_provider, self.vector_store)
        results = retriever.search(query, threshold=threshold, count=count)
        return VerificationReport(
            stored_count=self.vector_store.count(),
            query=query,
            results=results,
        )
