"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from enghien.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "openai"
    model: str = "openai/text-embedding-3-small"
    dimension: int = 1536
    base_url: str = "https://openrouter.ai/api/v1"
    batch_size: int = 20
    batch_delay: float = 0.5
    max_attempts: int = 3
    retry_delay: float = 5.0
    # Local provider; its 768-d vectors need a store built for them.
    ollama_model: str = "nomic-embed-text"
    ollama_base_url: str = "http://localhost:11434"
    ollama_dimension: int = 768


class VectorStoreSettings(BaseModel):
    backend: str = "pgvector"
    table: str = "enghien_documents"
    path: str = "local_data/vectorstore"
    collection: str = "enghien_documents"
    pool_max_size: int = 10


class LLMSettings(BaseModel):
    model: str = "anthropic/claude-sonnet-4"
    base_url: str = "https://openrouter.ai/api/v1"
    temperature: float = 0.3
    max_tokens: int = 2048


class ChunkingSettings(BaseModel):
    min_chunk_size: int = 1500
    max_chunk_size: int = 2500
    overlap_size: int = 300
    min_emit_size: int = 100


class RetrievalSettings(BaseModel):
    # Library default and the chat endpoint's tuned value are kept apart.
    threshold: float = 0.4
    chat_threshold: float = 0.35
    count: int = 8


class Credentials(BaseModel):
    openrouter_api_key: str | None = None
    database_url: str | None = None
    site_url: str = "http://localhost:3000"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    credentials: Credentials = Field(default_factory=Credentials)

    def require(self, name: str) -> str:
        """Return a credential or raise ``ConfigurationError`` if unset."""
        value = getattr(self.credentials, name, None)
        if not value:
            raise ConfigurationError(f"{name.upper()} is not set")
        return value


_ENV_OVERRIDES: list[tuple[str, str, str]] = [
    ("OPENROUTER_API_KEY", "credentials", "openrouter_api_key"),
    ("DATABASE_URL", "credentials", "database_url"),
    ("SITE_URL", "credentials", "site_url"),
    ("ENGHIEN_EMBEDDING_PROVIDER", "embedding", "provider"),
    ("ENGHIEN_STORE_BACKEND", "vectorstore", "backend"),
    ("OLLAMA_BASE_URL", "embedding", "ollama_base_url"),
]


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("ENGHIEN_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def _apply_env_overrides(raw: dict) -> dict:
    for env_name, section, key in _ENV_OVERRIDES:
        value = os.getenv(env_name)
        if value:
            raw.setdefault(section, {})[key] = value
    return raw


def load_settings() -> Settings:
    """Load settings from YAML file, then apply environment overrides."""
    path = _find_settings_file()
    raw: dict = {}
    if path is not None:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

    return Settings(**_apply_env_overrides(raw))
