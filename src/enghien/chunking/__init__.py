"""Normalisation, heading detection and structure-aware chunking."""

from enghien.chunking.builder import ChunkBuilder, chunk_text
from enghien.chunking.normalizer import normalize
from enghien.chunking.schemas import BOOK_TITLES, Chunk, ChunkMetadata
from enghien.chunking.segmenter import classify

__all__ = [
    "BOOK_TITLES",
    "Chunk",
    "ChunkBuilder",
    "ChunkMetadata",
    "chunk_text",
    "classify",
    "normalize",
]
