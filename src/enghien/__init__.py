"""Enghien RAG — segment, embed and query "Histoire de la ville d'Enghien"."""

__version__ = "0.1.0"
