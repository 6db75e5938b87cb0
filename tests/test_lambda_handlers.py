"""Tests for the Lambda query and health handlers.

The ``lambda/`` directory uses a Python reserved word, so we import the module
via importlib and patch attributes directly on the loaded module object.
"""

from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path
from types import ModuleType
from unittest.mock import MagicMock, patch

import pytest

from conftest import make_metadata
from enghien.config import Settings
from enghien.errors import StoreError, ValidationError
from enghien.health import Check, HealthReport
from enghien.pipeline.schemas import RAGResponse
from enghien.vectorstore.schemas import RetrievalFilter, SearchResult

# ---------------------------------------------------------------------------
# Module loading helpers (``lambda`` is a reserved keyword)
# ---------------------------------------------------------------------------


def _load_handler(name: str) -> ModuleType:
    """Import lambda/<name>.py via importlib."""
    repo_root = Path(__file__).resolve().parent.parent
    lambda_dir = repo_root / "lambda"
    if str(lambda_dir) not in sys.path:
        sys.path.insert(0, str(lambda_dir))
    spec = importlib.util.spec_from_file_location(
        name, lambda_dir / f"{name}.py"
    )
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _make_apigw_event(body: dict | None = None, raw: str | None = None) -> dict:
    """Build a minimal API Gateway event."""
    return {
        "body": raw if raw is not None else (json.dumps(body) if body else None),
        "httpMethod": "POST",
        "path": "/chat",
    }


def _response(sources: list[SearchResult] | None = None) -> RAGResponse:
    return RAGResponse(
        question="Qui était le bailli ?",
        answer="Le bailli représentait le seigneur (Livre II, Chapitre I, p. 40).",
        sources=sources or [],
        context="[Extrait 1] (Livre II, Chapitre I, p. 40)\n...",
        model="anthropic/claude-sonnet-4",
        retrieval_count=len(sources or []),
    )


@pytest.fixture
def handler_module():
    mod = _load_handler("query_handler")
    yield mod
    mod._pipeline = None


@pytest.fixture
def pipeline(handler_module) -> MagicMock:
    mock_pipeline = MagicMock()
    mock_pipeline.answer.return_value = _response()
    handler_module._pipeline = mock_pipeline
    return mock_pipeline


# ---------------------------------------------------------------------------
# Query Handler Tests
# ---------------------------------------------------------------------------


class TestQueryHandler:
    """Tests for lambda/query_handler.py."""

    def test_valid_request(self, handler_module, pipeline):
        source = SearchResult(
            id=42,
            text="Le bailli " * 50,
            similarity=0.81,
            metadata=make_metadata(book="II", chapter="I", page_start=40),
        )
        pipeline.answer.return_value = _response([source])

        result = handler_module.handler(_make_apigw_event({"question": "Qui était le bailli ?"}), None)

        assert result["statusCode"] == 200
        assert result["headers"]["Content-Type"] == "application/json"
        body = json.loads(result["body"])
        assert body["answer"].startswith("Le bailli")
        assert body["model"] == "anthropic/claude-sonnet-4"
        assert body["retrieval_count"] == 1
        assert body["sources"][0]["id"] == 42
        assert body["sources"][0]["similarity"] == pytest.approx(0.81)
        assert body["sources"][0]["metadata"]["book"] == "II"
        assert len(body["sources"][0]["preview"]) == 200
        pipeline.answer.assert_called_once_with("Qui était le bailli ?", metadata_filter=None)

    def test_book_and_chapter_forwarded(self, handler_module, pipeline):
        event = _make_apigw_event({"question": "Les échevins ?", "book": "II", "chapter": "I"})
        handler_module.handler(event, None)

        mf = pipeline.answer.call_args.kwargs["metadata_filter"]
        assert mf == RetrievalFilter(book="II", chapter="I")

    @pytest.mark.parametrize("field", ["book", "chapter"])
    def test_non_string_filter_is_400(self, handler_module, pipeline, field):
        event = _make_apigw_event({"question": "Les échevins ?", field: 1})
        result = handler_module.handler(event, None)

        assert result["statusCode"] == 400
        assert field in json.loads(result["body"])["error"]
        pipeline.answer.assert_not_called()

    def test_null_filter_ignored(self, handler_module, pipeline):
        event = _make_apigw_event({"question": "Les échevins ?", "book": None})
        result = handler_module.handler(event, None)

        assert result["statusCode"] == 200
        pipeline.answer.assert_called_once_with("Les échevins ?", metadata_filter=None)

    def test_missing_question(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event({"book": "I"}), None)

        assert result["statusCode"] == 400
        assert "question" in json.loads(result["body"])["error"]
        pipeline.answer.assert_not_called()

    def test_blank_question(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event({"question": "   "}), None)
        assert result["statusCode"] == 400

    def test_non_string_question(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event({"question": 12}), None)
        assert result["statusCode"] == 400

    def test_empty_body(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event(), None)
        assert result["statusCode"] == 400

    def test_invalid_json(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event(raw="{question:"), None)

        assert result["statusCode"] == 400
        assert json.loads(result["body"])["error"] == "Invalid JSON body"

    def test_json_array_body(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event(raw='["question"]'), None)
        assert result["statusCode"] == 400

    def test_validation_error_is_400(self, handler_module, pipeline):
        pipeline.answer.side_effect = ValidationError("Query text is required")

        result = handler_module.handler(_make_apigw_event({"question": "?"}), None)

        assert result["statusCode"] == 400
        assert json.loads(result["body"])["error"] == "Query text is required"

    def test_store_error_is_generic_500(self, handler_module, pipeline):
        pipeline.answer.side_effect = StoreError("password authentication failed", provider_name="pgvector")

        result = handler_module.handler(_make_apigw_event({"question": "Le bailli ?"}), None)

        assert result["statusCode"] == 500
        body = json.loads(result["body"])
        assert body == {"error": "Erreur serveur"}

    def test_unexpected_error_is_500(self, handler_module, pipeline):
        pipeline.answer.side_effect = RuntimeError("boom")
        result = handler_module.handler(_make_apigw_event({"question": "Le bailli ?"}), None)
        assert result["statusCode"] == 500

    def test_non_ascii_preserved(self, handler_module, pipeline):
        result = handler_module.handler(_make_apigw_event({"question": "Les échevins ?"}), None)
        assert "représentait" in result["body"]


class TestPipelineLifecycle:
    def test_pipeline_built_once(self, handler_module):
        settings = MagicMock()
        settings.retrieval.chat_threshold = 0.35
        settings.retrieval.count = 8

        with patch.object(handler_module, "load_settings", return_value=settings) as mock_load, \
                patch.object(handler_module, "build_embedding_provider") as mock_emb, \
                patch.object(handler_module, "build_vector_store") as mock_store, \
                patch.object(handler_module, "build_llm_provider"):
            first = handler_module._get_pipeline()
            second = handler_module._get_pipeline()

        assert first is second
        assert mock_load.call_count == 1
        assert first.threshold == 0.35
        mock_store.assert_called_once_with(settings, dimension=mock_emb.return_value.dimension)

    def test_shutdown_closes_store(self, handler_module):
        pipeline = MagicMock()
        handler_module._pipeline = pipeline

        handler_module.shutdown()

        pipeline.retriever.vector_store.close.assert_called_once()
        assert handler_module._pipeline is None

    def test_shutdown_without_pipeline(self, handler_module):
        handler_module.shutdown()
        assert handler_module._pipeline is None


# ---------------------------------------------------------------------------
# Health Handler Tests
# ---------------------------------------------------------------------------


class TestHealthHandler:
    @pytest.fixture
    def health_module(self):
        return _load_handler("health_handler")

    def _report(self, **checks: Check) -> HealthReport:
        return HealthReport(checks=checks)

    def test_healthy_is_200(self, health_module):
        report = self._report(
            database=Check("ok", "2458 passages"),
            openrouter=Check("ok", "API key present"),
        )

        with patch.object(health_module, "load_settings"), \
                patch.object(health_module, "check_health", return_value=report):
            result = health_module.handler({"httpMethod": "GET"}, None)

        assert result["statusCode"] == 200
        body = json.loads(result["body"])
        assert body["status"] == "healthy"
        assert body["checks"]["database"] == {"status": "ok", "detail": "2458 passages"}

    def test_unhealthy_is_500(self, health_module):
        report = self._report(
            database=Check("error", "Count failed: connection refused"),
            openrouter=Check("ok", "API key present"),
        )

        with patch.object(health_module, "load_settings"), \
                patch.object(health_module, "check_health", return_value=report):
            result = health_module.handler({"httpMethod": "GET"}, None)

        assert result["statusCode"] == 500
        assert json.loads(result["body"])["status"] == "unhealthy"

    def test_missing_configuration_is_500(self, health_module):
        with patch.object(health_module, "load_settings", return_value=Settings()):
            result = health_module.handler({"httpMethod": "GET"}, None)

        body = json.loads(result["body"])
        assert result["statusCode"] == 500
        assert body["checks"]["database_url"]["detail"] == "Missing DATABASE_URL"
