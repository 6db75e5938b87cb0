"""Tests for the Typer CLI — offline commands, fake database pool."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from cli.main import app
from conftest import FakePool
from enghien.vectorstore.pgvector_store import PgVectorStore

runner = CliRunner()


class TestChunkCommand:
    def test_writes_chunk_file(self, tmp_path: Path, raw_book_text: str):
        source = tmp_path / "histoire.txt"
        source.write_text(raw_book_text, encoding="utf-8")
        output = tmp_path / "out" / "chunks.json"

        result = runner.invoke(app, ["chunk", str(source), "--output", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data
        assert {d["metadata"]["book"] for d in data} == {"I", "II"}

    def test_missing_input(self, tmp_path: Path):
        result = runner.invoke(app, ["chunk", str(tmp_path / "absent.txt")])
        assert result.exit_code == 1


class TestIngestCommand:
    def test_bad_chunk_file_exits_1(self, tmp_path: Path):
        bad = tmp_path / "chunks.json"
        bad.write_text("{}", encoding="utf-8")

        result = runner.invoke(app, ["ingest", str(bad), "--embedding", "ollama", "--store", "faiss"])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestSearchCommand:
    def test_missing_credentials_exit_1(self, tmp_path: Path):
        previous = Path.cwd()
        os.chdir(tmp_path)
        try:
            with patch.dict("os.environ", {}, clear=True):
                result = runner.invoke(app, ["search", "seigneurs d'Enghien"])
        finally:
            os.chdir(previous)

        assert result.exit_code == 1
        assert "OPENROUTER_API_KEY" in result.output


class TestStatusCommand:
    def test_lists_components(self):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "pgvector" in result.output
        assert "ollama" in result.output


@pytest.fixture
def clean_env(tmp_path: Path):
    """Run from an empty directory with no enghien environment variables."""
    previous = Path.cwd()
    os.chdir(tmp_path)
    with patch.dict("os.environ", {}, clear=True):
        yield tmp_path
    os.chdir(previous)


class TestInitDbCommand:
    def test_creates_schema(self, clean_env):
        conn = MagicMock()
        pool = FakePool(conn)
        store = PgVectorStore(pool=pool, dimension=1536)

        with patch("enghien.bootstrap.build_vector_store", return_value=store) as mock_build:
            result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0, result.output
        assert mock_build.call_args.args[1] == "pgvector"
        assert mock_build.call_args.kwargs["dimension"] == 1536
        statements = [c.args[0] for c in conn.execute.call_args_list]
        assert statements[0] == "CREATE EXTENSION IF NOT EXISTS vector"
        assert any("VECTOR(1536)" in s for s in statements)
        assert not any(s.startswith("DROP TABLE") for s in statements)
        assert pool.closed

    def test_reset_drops_table(self, clean_env):
        conn = MagicMock()
        store = PgVectorStore(pool=FakePool(conn))

        with patch("enghien.bootstrap.build_vector_store", return_value=store):
            result = runner.invoke(app, ["init-db", "--reset"])

        assert result.exit_code == 0, result.output
        statements = [c.args[0] for c in conn.execute.call_args_list]
        assert "DROP TABLE IF EXISTS enghien_documents CASCADE" in statements

    def test_sized_for_ollama(self, clean_env):
        store = PgVectorStore(pool=FakePool(MagicMock()))

        with patch.dict("os.environ", {"ENGHIEN_EMBEDDING_PROVIDER": "ollama"}), \
                patch("enghien.bootstrap.build_vector_store", return_value=store) as mock_build:
            result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0, result.output
        assert mock_build.call_args.kwargs["dimension"] == 768

    def test_missing_database_url(self, clean_env):
        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 1
        assert "DATABASE_URL" in result.output


class TestHealthCommand:
    def test_unhealthy_exits_1(self, clean_env):
        result = runner.invoke(app, ["health"])

        assert result.exit_code == 1
        assert "unhealthy" in result.output

    def test_healthy_local_store(self, clean_env):
        env = {"OPENROUTER_API_KEY": "sk-or-test", "ENGHIEN_STORE_BACKEND": "faiss"}
        with patch.dict("os.environ", env):
            result = runner.invoke(app, ["health"])

        assert result.exit_code == 0, result.output
        assert "unhealthy" not in result.output
        assert "0 passages" in result.output

    def test_database_url_masked(self, clean_env):
        store = PgVectorStore(pool=FakePool(MagicMock()))
        store._pool.conn.execute.return_value.fetchone.return_value = (12,)
        env = {
            "OPENROUTER_API_KEY": "sk-or-test",
            "DATABASE_URL": "postgresql://enghien:s3cret@db:5432/enghien",
        }
        with patch.dict("os.environ", env), \
                patch("enghien.health.build_vector_store", return_value=store):
            result = runner.invoke(app, ["health"])

        assert result.exit_code == 0, result.output
        assert "s3cret" not in result.output
        assert "***" in result.output
