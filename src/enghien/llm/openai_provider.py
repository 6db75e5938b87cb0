"""OpenAI-compatible chat provider, pointed at OpenRouter by default.

Routes to Claude through OpenRouter. The API key comes from the
``api_key`` argument or the ``OPENROUTER_API_KEY`` env var.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import openai

from enghien.errors import ConfigurationError
from enghien.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "anthropic/claude-sonnet-4"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAILLMProvider(LLMProvider):
    """Generate responses via an OpenAI-compatible Chat Completions API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        max_tokens: int = 2048,
        temperature: float = 0.3,
        site_url: str | None = None,
        client: Any = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        if client is not None:
            self._client = client
            return

        api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not set", provider_name="openrouter")

        self._client = openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers={
                "HTTP-Referer": site_url or os.getenv("SITE_URL", "http://localhost:3000"),
                "X-Title": "Enghien RAG Chat",
            },
        )

    def generate(self, prompt: str, system: str | None = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return response.choices[0].message.content or ""
