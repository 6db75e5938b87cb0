"""Ollama embedding provider — local, no API keys needed.

Uses the Ollama REST API (http://localhost:11434). Only useful with a
store built from the same model, since dimensions differ from OpenAI's.
"""

from __future__ import annotations

import logging

import httpx

from enghien.embeddings.base import EmbeddingProvider
from enghien.errors import EmbeddingServiceError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768
PROVIDER = "ollama"


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch via ``/api/embed``.

        Older Ollama servers lack that endpoint (404); fall back to one
        ``/api/embeddings`` call per text.
        """
        if not texts:
            return []

        data = self._post("/api/embed", {"model": self.model, "input": texts}, allow_missing=True)
        if data is None:
            logger.debug("Ollama /api/embed unavailable, embedding sequentially")
            return [self._embed_single(text) for text in texts]

        return data["embeddings"]

    def embed_query(self, query: str) -> list[float]:
        return self._embed_single(query)

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed_single(self, text: str) -> list[float]:
        data = self._post("/api/embeddings", {"model": self.model, "prompt": text})
        return data["embedding"]

    def _post(self, path: str, payload: dict, allow_missing: bool = False) -> dict | None:
        try:
            resp = self._client.post(path, json=payload)
            if allow_missing and resp.status_code == 404:
                return None
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise EmbeddingServiceError(
                f"HTTP {exc.response.status_code} from {path}",
                provider_name=PROVIDER,
                rate_limited=exc.response.status_code == 429,
            ) from exc
        except httpx.HTTPError as exc:
            raise EmbeddingServiceError(str(exc), provider_name=PROVIDER) from exc
        return resp.json()
