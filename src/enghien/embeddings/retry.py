"""Bounded retry for batch embedding calls used during ingestion."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from enghien.embeddings.base import EmbeddingProvider
from enghien.errors import EmbeddingServiceError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY = 5.0


def embed_with_retry(
    provider: EmbeddingProvider,
    texts: list[str],
    max_attempts: int = MAX_ATTEMPTS,
    retry_delay: float = RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> list[list[float]]:
    """Embed *texts*, retrying ``EmbeddingServiceError`` a bounded number of times.

    Ordinary failures wait ``retry_delay`` seconds before the next attempt;
    rate-limited ones wait ``retry_delay * (attempt + 1)``. The last error is
    re-raised once ``max_attempts`` is exhausted.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            embeddings = provider.embed_texts(texts)
        except EmbeddingServiceError as exc:
            if attempt == max_attempts:
                logger.error("Embedding failed after %d attempts: %s", attempt, exc)
                raise
            delay = retry_delay * (attempt + 1) if exc.rate_limited else retry_delay
            logger.warning(
                "Embedding attempt %d/%d failed (%s), retrying in %.1fs",
                attempt, max_attempts, exc, delay,
            )
            sleep(delay)
            continue

        if len(embeddings) != len(texts):
            raise EmbeddingServiceError(
                f"Expected {len(texts)} vectors, got {len(embeddings)}",
                provider_name=provider.provider_name(),
            )
        return embeddings

    raise ValueError("max_attempts must be at least 1")
