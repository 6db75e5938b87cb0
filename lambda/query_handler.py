"""Lambda handler for chat questions — triggered by API Gateway.

Thin wrapper around QueryPipeline. All business logic lives in src/enghien/.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from enghien.bootstrap import build_embedding_provider, build_llm_provider, build_vector_store
from enghien.config import load_settings
from enghien.errors import ValidationError
from enghien.pipeline.query import QueryPipeline
from enghien.vectorstore.schemas import RetrievalFilter

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

PREVIEW_CHARS = 200

# Initialize outside handler for Lambda warm-start reuse
_pipeline: QueryPipeline | None = None


def _get_pipeline() -> QueryPipeline:
    global _pipeline
    if _pipeline is not None:
        return _pipeline

    settings = load_settings()
    emb = build_embedding_provider(settings)
    store = build_vector_store(settings, dimension=emb.dimension)
    llm = build_llm_provider(settings)
    _pipeline = QueryPipeline(
        embedding_provider=emb,
        vector_store=store,
        llm_provider=llm,
        threshold=settings.retrieval.chat_threshold,
        count=settings.retrieval.count,
    )
    return _pipeline


def shutdown() -> None:
    """Release the pooled store connection held by the warm pipeline."""
    global _pipeline
    if _pipeline is None:
        return
    _pipeline.retriever.vector_store.close()
    _pipeline = None


def _response(status: int, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload, ensure_ascii=False),
    }


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle API Gateway request — parse question, run pipeline, return JSON."""
    try:
        body = json.loads(event.get("body") or "{}")
    except (json.JSONDecodeError, TypeError):
        return _response(400, {"error": "Invalid JSON body"})

    if not isinstance(body, dict):
        return _response(400, {"error": "Invalid JSON body"})

    question = body.get("question")
    if not isinstance(question, str) or not question.strip():
        return _response(400, {"error": "Missing 'question' field"})

    book, chapter = body.get("book"), body.get("chapter")
    for name, value in (("book", book), ("chapter", chapter)):
        if value is not None and not isinstance(value, str):
            return _response(400, {"error": f"'{name}' must be a string"})

    metadata_filter = RetrievalFilter(book=book, chapter=chapter)

    try:
        response = _get_pipeline().answer(
            question,
            metadata_filter=None if metadata_filter.is_empty else metadata_filter,
        )
    except ValidationError as exc:
        return _response(400, {"error": exc.message})
    except Exception:
        logger.exception("Chat request failed")
        return _response(500, {"error": "Erreur serveur"})

    return _response(200, {
        "answer": response.answer,
        "sources": [
            {
                "id": s.id,
                "metadata": s.metadata.to_dict(),
                "similarity": s.similarity,
                "preview": s.text[:PREVIEW_CHARS],
            }
            for s in response.sources
        ],
        "model": response.model,
        "retrieval_count": response.retrieval_count,
    })
