"""Data models for the RAG pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from enghien.vectorstore.schemas import SearchResult


@dataclass
class RAGResponse:
    """Output of the answer pipeline."""

    question: str
    answer: str
    sources: list[SearchResult] = field(default_factory=list)
    context: str = ""
    model: str = ""
    retrieval_count: int = 0


@dataclass
class IngestResult:
    """Result of an ingestion run."""

    chunks_total: int
    chunks_stored: int
    batches: int = 0
    elapsed_seconds: float = 0.0
    ids: list[int] = field(default_factory=list)

    @property
    def chunks_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.chunks_stored / self.elapsed_seconds


@dataclass
class VerificationReport:
    """Post-ingestion sanity check: store size plus one sample query."""

    stored_count: int
    query: str
    results: list[SearchResult] = field(default_factory=list)
