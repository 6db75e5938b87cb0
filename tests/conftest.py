"""Shared fixtures for tests — synthetic book text, mock providers, no network calls."""

from __future__ import annotations

import hashlib
import textwrap
from contextlib import contextmanager
from unittest.mock import MagicMock

import numpy as np
import pytest

from enghien.chunking.schemas import Chunk, ChunkMetadata, book_title
from enghien.embeddings.base import EmbeddingProvider
from enghien.llm.base import LLMProvider

DIM = 64  # Small dimension for fast tests


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


class MockEmbedder(EmbeddingProvider):
    """Deterministic embeddings: identical text gives an identical vector."""

    def __init__(self, dim: int = DIM):
        self._dim = dim
        self.batches: list[list[str]] = []
        self.queries: list[str] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [self._hash_embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        self.queries.append(query)
        return self._hash_embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> list[float]:
        h = hashlib.sha256(text.encode()).digest()
        vec = np.array([h[i % len(h)] / 255.0 for i in range(self._dim)], dtype=np.float32)
        vec /= np.linalg.norm(vec)
        return vec.tolist()


class MockLLM(LLMProvider):
    """Records the prompt it was given and returns a canned French answer."""

    def __init__(self, model: str = "mock-llm"):
        self.model = model
        self.calls: list[tuple[str, str | None]] = []

    def generate(self, prompt: str, system: str | None = None) -> str:
        self.calls.append((prompt, system))
        return "Les seigneurs d'Enghien descendaient de la maison d'Enghien (Livre I, Chapitre II, p. 10)."

    @property
    def last_prompt(self) -> str:
        return self.calls[-1][0] if self.calls else ""


@pytest.fixture
def embedder() -> MockEmbedder:
    return MockEmbedder()


@pytest.fixture
def llm() -> MockLLM:
    return MockLLM()


class FakePool:
    """Stands in for a psycopg_pool.ConnectionPool around one mock connection."""

    def __init__(self, conn: MagicMock):
        self.conn = conn
        self.closed = False

    @contextmanager
    def connection(self):
        yield self.conn

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Chunk helpers
# ---------------------------------------------------------------------------


def make_metadata(
    book: str = "I",
    chapter: str = "I",
    section: str | None = None,
    page_start: int = 1,
    page_end: int | None = None,
    sequence_index: int = 0,
) -> ChunkMetadata:
    return ChunkMetadata(
        book=book,
        book_title=book_title(book),
        chapter=chapter,
        section=section,
        page_start=page_start,
        page_end=page_start if page_end is None else page_end,
        sequence_index=sequence_index,
    )


def make_chunks(n: int, book: str = "I") -> list[Chunk]:
    return [
        Chunk(
            content=f"Passage {i} sur l'histoire de la ville d'Enghien.",
            metadata=make_metadata(book=book, page_start=i + 1, sequence_index=i),
        )
        for i in range(n)
    ]


# ---------------------------------------------------------------------------
# Synthetic book content
# ---------------------------------------------------------------------------


@pytest.fixture
def raw_book_text() -> str:
    """Small OCR-like excerpt spanning two books, with page markers."""
    paragraph = (
        "La ville d'Enghien, située dans le Hainaut, doit son origine à un "
        "château bâti par les premiers seigneurs du lieu. "
    )
    return textwrap.dedent("""\
        LIVRE I
        HISTOIRE ET GÉNÉALOGIE

        CHAPITRE I

        — 1 —
        {body}

        § 1er. — Origines de la ville
        {body}
        — 2 —

        {body}

        LIVRE II

        CHAPITRE I
        — 40 —
        Le magistrat se composait d’un bailli, de sept échevins et de deux bourgmestres.   \r
        {body}
    """).format(body=paragraph * 6)
