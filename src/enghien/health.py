"""Deployment health checks: store reachable, credentials present."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from enghien.bootstrap import build_vector_store
from enghien.config import Settings
from enghien.errors import EnghienError
from enghien.vectorstore.base import VectorStore

logger = logging.getLogger(__name__)

OK = "ok"
ERROR = "error"

_DSN_PASSWORD = re.compile(r":[^:@]+@")


def mask_dsn(url: str) -> str:
    """Hide the password of a connection URL."""
    return _DSN_PASSWORD.sub(":***@", url, count=1)


@dataclass
class Check:
    status: str
    detail: str

    @property
    def ok(self) -> bool:
        return self.status == OK


@dataclass
class HealthReport:
    checks: dict[str, Check] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return all(check.ok for check in self.checks.values())

    @property
    def status(self) -> str:
        return "healthy" if self.healthy else "unhealthy"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "checks": {
                name: {"status": check.status, "detail": check.detail}
                for name, check in self.checks.items()
            },
        }


def _check_store(settings: Settings, store: VectorStore | None) -> Check:
    owned = store is None
    try:
        if store is None:
            store = build_vector_store(settings)
        return Check(OK, f"{store.count()} passages")
    except EnghienError as exc:
        logger.warning("Store health check failed: %s", exc)
        return Check(ERROR, exc.message)
    finally:
        if owned and store is not None:
            store.close()


def check_health(settings: Settings, store: VectorStore | None = None) -> HealthReport:
    """Run every check; none of them raises.

    Args:
        settings: Resolved settings.
        store: Store to count. Built from ``settings`` (and closed) when omitted.
    """
    report = HealthReport()
    report.checks["database"] = _check_store(settings, store)

    key = settings.credentials.openrouter_api_key
    report.checks["openrouter"] = (
        Check(OK, "API key present") if key else Check(ERROR, "Missing OPENROUTER_API_KEY")
    )

    if settings.vectorstore.backend.lower() == "pgvector":
        url = settings.credentials.database_url
        report.checks["database_url"] = (
            Check(OK, f"URL: {mask_dsn(url)}") if url else Check(ERROR, "Missing DATABASE_URL")
        )

    logger.info("Health: %s", report.status)
    return report
