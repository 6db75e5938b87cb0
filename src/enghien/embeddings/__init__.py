"""Embedding providers — OpenAI-compatible (OpenRouter) and Ollama."""

from enghien.embeddings.base import EmbeddingProvider
from enghien.embeddings.factory import available_providers, get_embedding_provider
from enghien.embeddings.retry import embed_with_retry

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "embed_with_retry",
    "get_embedding_provider",
]
