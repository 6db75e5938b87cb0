"""End-to-end RAG pipeline — ingestion, context assembly, prompts, answers."""

from enghien.pipeline.context import assemble_context, dedupe_sources, format_sources
from enghien.pipeline.ingest import IngestPipeline
from enghien.pipeline.query import QueryPipeline
from enghien.pipeline.schemas import IngestResult, RAGResponse, VerificationReport

__all__ = [
    "IngestPipeline",
    "IngestResult",
    "QueryPipeline",
    "RAGResponse",
    "VerificationReport",
    "assemble_context",
    "dedupe_sources",
    "format_sources",
]
