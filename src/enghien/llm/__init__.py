"""LLM provider — OpenAI-compatible chat through OpenRouter."""

from enghien.llm.base import LLMProvider
from enghien.llm.openai_provider import OpenAILLMProvider

__all__ = ["LLMProvider", "OpenAILLMProvider"]
