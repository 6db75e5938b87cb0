"""OpenAI-compatible embedding provider, pointed at OpenRouter by default.

Uses ``text-embedding-3-small`` (1536 dimensions). The API key comes from
the ``api_key`` argument or the ``OPENROUTER_API_KEY`` env var.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import openai

from enghien.embeddings.base import EmbeddingProvider
from enghien.errors import ConfigurationError, EmbeddingServiceError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/text-embedding-3-small"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
PROVIDER = "openrouter"

_DIMENSION_MAP = {
    "openai/text-embedding-3-small": 1536,
    "openai/text-embedding-3-large": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via an OpenAI-compatible Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        dimensions: int | None = None,
        site_url: str | None = None,
        client: Any = None,
    ):
        self.model = model
        self._dimensions = dimensions or _DIMENSION_MAP.get(model, 1536)

        if client is not None:
            self._client = client
            return

        api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not set", provider_name=PROVIDER)

        self._client = openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers={
                "HTTP-Referer": site_url or os.getenv("SITE_URL", "http://localhost:3000"),
                "X-Title": "Enghien RAG",
            },
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        resp = self._create(texts)
        # Sort by index to guarantee order
        sorted_data = sorted(resp.data, key=lambda x: x.index)
        return [d.embedding for d in sorted_data]

    def embed_query(self, query: str) -> list[float]:
        resp = self._create([query])
        return resp.data[0].embedding

    @property
    def dimension(self) -> int:
        return self._dimensions

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create(self, texts: list[str]) -> Any:
        try:
            return self._client.embeddings.create(model=self.model, input=texts)
        except openai.RateLimitError as exc:
            raise EmbeddingServiceError(
                f"Rate limited: {exc}", provider_name=PROVIDER, rate_limited=True,
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingServiceError(str(exc), provider_name=PROVIDER) from exc
