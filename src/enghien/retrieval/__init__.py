"""Retrieval — query embedding + thresholded similarity search."""

from enghien.retrieval.retriever import Retriever
from enghien.retrieval.schemas import RetrievalConfig, RetrievalResult

__all__ = ["Retriever", "RetrievalConfig", "RetrievalResult"]
