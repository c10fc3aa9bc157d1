"""LLM provider abstraction: OpenAI, Azure OpenAI or OpenRouter via env var."""

from flowpieces.reasoning.providers._base import LLMProvider, LLMResponse, ToolCall
from flowpieces.reasoning.providers._factory import (
    get_provider,
    provider_available,
    reset_provider,
)

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "ToolCall",
    "get_provider",
    "provider_available",
    "reset_provider",
]
