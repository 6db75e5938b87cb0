"""Vector store factory — registry and lazy import."""

from __future__ import annotations

import importlib
import logging

from enghien.vectorstore.base import VectorStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("pgvector", "enghien.vectorstore.pgvector_store", "PgVectorStore"),
    ("faiss", "enghien.vectorstore.faiss_store", "FAISSStore"),
    ("qdrant", "enghien.vectorstore.qdrant_store", "QdrantStore"),
]


def get_vector_store(
    provider: str = "pgvector",
    **kwargs,
) -> VectorStore:
    """Get a vector store by name.

    Args:
        provider: One of ``pgvector``, ``faiss``, ``qdrant``.
        **kwargs: Passed to the store constructor.

    Returns:
        A ``VectorStore`` instance.
    """
    key = provider.lower()

    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            logger.debug("Creating vector store %s", cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _STORE_REGISTRY]
    raise ValueError(f"Unknown vector store '{provider}'. Available: {available}")


def available_stores() -> list[str]:
    """Return names of registered vector stores."""
    return [k for k, _, _ in _STORE_REGISTRY]
