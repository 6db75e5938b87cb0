"""PostgreSQL + pgvector store — the production backend.

Passages live in one table (``content``, ``embedding VECTOR(1536)``,
``metadata JSONB``). Similarity is computed in SQL as
``1 - (embedding <=> query)``. Connections come from a pool created on
first use; each operation checks one out and returns it immediately.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from enghien.chunking.schemas import ChunkMetadata
from enghien.errors import ConfigurationError, StoreError
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.schemas import RetrievalFilter, SearchResult, VectorRecord

logger = logging.getLogger(__name__)

PROVIDER = "pgvector"
DEFAULT_TABLE = "enghien_documents"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Filter field -> JSONB key. Only these keys ever reach the SQL text.
_FILTER_KEYS = {"book": "book", "chapter": "chapter"}


def vector_literal(embedding: list[float]) -> str:
    """Render a vector in pgvector's text input format."""
    return "[" + ",".join(str(float(x)) for x in embedding) + "]"


class PgVectorStore(VectorStore):
    """pgvector-backed store with JSONB metadata filtering."""

    def __init__(
        self,
        dsn: str | None = None,
        table: str = DEFAULT_TABLE,
        dimension: int = 1536,
        pool: Any = None,
        max_size: int = 10,
        timeout: float = 2.0,
    ):
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name '{table}'")

        self._dsn = dsn or os.getenv("DATABASE_URL")
        if pool is None and not self._dsn:
            raise ConfigurationError("DATABASE_URL is not set", provider_name=PROVIDER)

        self._table = table
        self._dimension = dimension
        self._pool = pool
        self._max_size = max_size
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def ensure_schema(self, reset: bool = False) -> None:
        """Create the extension, table and metadata indexes if missing."""
        t = self._table
        with self._connection("Schema setup") as conn:
            conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
            if reset:
                conn.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {t} ("
                " id BIGSERIAL PRIMARY KEY,"
                " content TEXT NOT NULL,"
                f" embedding VECTOR({self._dimension}),"
                " metadata JSONB NOT NULL DEFAULT '{}',"
                " created_at TIMESTAMPTZ DEFAULT NOW())"
            )
            conn.execute(f"CREATE INDEX IF NOT EXISTS {t}_metadata_idx ON {t} USING GIN (metadata)")
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS {t}_book_idx ON {t} ((metadata->>'book'))"
            )
        logger.info("pgvector schema ready (table=%s, dim=%d)", t, self._dimension)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> list[int]:
        if not records:
            return []

        sql = (
            f"INSERT INTO {self._table} (content, embedding, metadata) "
            "VALUES (%s, %s::vector, %s) RETURNING id"
        )
        ids: list[int] = []
        with self._connection("Insert") as conn:
            for record in records:
                row = conn.execute(
                    sql,
                    (record.text, vector_literal(record.embedding), Jsonb(record.metadata.to_dict())),
                ).fetchone()
                ids.append(int(row[0]))

        logger.info("PgVectorStore added %d records", len(ids))
        return ids

    def search(
        self,
        query_embedding: list[float],
        threshold: float = 0.0,
        count: int = 8,
        metadata_filter: RetrievalFilter | None = None,
    ) -> list[SearchResult]:
        if count <= 0:
            return []

        params: dict[str, Any] = {
            "query": vector_literal(query_embedding),
            "threshold": threshold,
            "count": count,
        }
        sql = (
            "SELECT id, content, metadata, "
            "1 - (embedding <=> %(query)s::vector) AS similarity "
            f"FROM {self._table} "
            "WHERE 1 - (embedding <=> %(query)s::vector) > %(threshold)s"
        )
        if metadata_filter:
            for field_name, value in metadata_filter.to_dict().items():
                key = _FILTER_KEYS[field_name]
                sql += f" AND metadata->>'{key}' = %({key})s"
                params[key] = value
        sql += " ORDER BY embedding <=> %(query)s::vector LIMIT %(count)s"

        with self._connection("Query") as conn:
            rows = conn.execute(sql, params).fetchall()

        return [self._row_to_result(row) for row in rows]

    def count(self) -> int:
        with self._connection("Count") as conn:
            row = conn.execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()
        return int(row[0])

    def clear(self) -> None:
        with self._connection("Truncate") as conn:
            conn.execute(f"TRUNCATE TABLE {self._table} RESTART IDENTITY")
        logger.info("PgVectorStore truncated %s", self._table)

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _get_pool(self) -> Any:
        if self._pool is None:
            self._pool = ConnectionPool(
                self._dsn,
                min_size=1,
                max_size=self._max_size,
                timeout=self._timeout,
                open=True,
            )
        return self._pool

    @contextmanager
    def _connection(self, action: str) -> Iterator[Any]:
        try:
            with self._get_pool().connection() as conn:
                yield conn
        except psycopg.Error as exc:
            raise StoreError(f"{action} failed: {exc}", provider_name=PROVIDER) from exc

    @staticmethod
    def _row_to_result(row: tuple) -> SearchResult:
        row_id, content, metadata, similarity = row
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return SearchResult(
            id=int(row_id),
            text=content,
            similarity=float(similarity),
            metadata=ChunkMetadata.from_dict(metadata or {}),
        )
