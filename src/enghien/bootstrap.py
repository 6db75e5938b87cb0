"""Build providers and stores from ``Settings``.

Shared by the CLI and the request handlers so both resolve credentials and
backend options the same way.
"""

from __future__ import annotations

from enghien.config import Settings
from enghien.embeddings.base import EmbeddingProvider
from enghien.embeddings.factory import get_embedding_provider
from enghien.llm.base import LLMProvider
from enghien.llm.openai_provider import OpenAILLMProvider
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.factory import get_vector_store


def embedding_dimension(settings: Settings, provider: str | None = None) -> int:
    """Vector size the configured embedding provider produces."""
    name = (provider or settings.embedding.provider).lower()
    if name == "ollama":
        return settings.embedding.ollama_dimension
    return settings.embedding.dimension


def build_embedding_provider(
    settings: Settings,
    provider: str | None = None,
) -> EmbeddingProvider:
    name = (provider or settings.embedding.provider).lower()
    if name == "openai":
        return get_embedding_provider(
            name,
            model=settings.embedding.model,
            api_key=settings.require("openrouter_api_key"),
            base_url=settings.embedding.base_url,
            dimensions=settings.embedding.dimension,
            site_url=settings.credentials.site_url,
        )
    if name == "ollama":
        return get_embedding_provider(
            name,
            model=settings.embedding.ollama_model,
            base_url=settings.embedding.ollama_base_url,
            dimension=settings.embedding.ollama_dimension,
        )
    return get_embedding_provider(name)


def build_vector_store(
    settings: Settings,
    backend: str | None = None,
    dimension: int | None = None,
) -> VectorStore:
    name = (backend or settings.vectorstore.backend).lower()
    dim = dimension or embedding_dimension(settings)
    if name == "pgvector":
        return get_vector_store(
            name,
            dsn=settings.require("database_url"),
            table=settings.vectorstore.table,
            dimension=dim,
            max_size=settings.vectorstore.pool_max_size,
        )
    if name == "qdrant":
        return get_vector_store(
            name,
            collection_name=settings.vectorstore.collection,
            dimension=dim,
            path=settings.vectorstore.path,
        )
    return get_vector_store(name, dimension=dim, path=settings.vectorstore.path)


def build_llm_provider(settings: Settings) -> LLMProvider:
    return OpenAILLMProvider(
        model=settings.llm.model,
        api_key=settings.require("openrouter_api_key"),
        base_url=settings.llm.base_url,
        max_tokens=settings.llm.max_tokens,
        temperature=settings.llm.temperature,
        site_url=settings.credentials.site_url,
    )
