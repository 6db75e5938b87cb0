"""Exception hierarchy for enghien-rag.

    EnghienError              (base)
    +-- ConfigurationError    missing endpoint or credential, fatal at startup
    +-- EmbeddingServiceError transport or rate-limit failure, retried at ingest
    +-- StoreError            vector store insert/query failure, propagated
    +-- ValidationError       malformed request or input file, rejected

Every error carries an optional ``provider_name`` naming the external
service involved (``openrouter``, ``ollama``, ``pgvector`` ...).
"""

from __future__ import annotations


class EnghienError(Exception):
    """Base exception for all enghien-rag errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(EnghienError):
    """A required endpoint or credential is missing."""


class EmbeddingServiceError(EnghienError):
    """The embedding service failed or refused the request.

    ``rate_limited`` is set when the provider signalled throttling, so the
    retry loop can wait longer before the next attempt.
    """

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
        rate_limited: bool = False,
    ) -> None:
        super().__init__(message, provider_name)
        self.rate_limited = rate_limited


class StoreError(EnghienError):
    """A vector store operation failed."""


class ValidationError(EnghienError):
    """A request or input document is malformed."""
