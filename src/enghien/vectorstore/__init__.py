"""Vector store backends — pgvector (production), FAISS (local), Qdrant."""

from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.factory import available_stores, get_vector_store
from enghien.vectorstore.schemas import RetrievalFilter, SearchResult, VectorRecord

__all__ = [
    "RetrievalFilter",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "available_stores",
    "get_vector_store",
]
