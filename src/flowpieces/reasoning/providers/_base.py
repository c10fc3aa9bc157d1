"""Abstract base for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class ToolCall:
    """A tool/function call returned by the LLM.

    ``raw_arguments`` keeps the provider's JSON string untouched.
    """

    id: str
    name: str
    arguments: dict
    raw_arguments: str = ""


@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""

    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0


class LLMProvider(ABC):
    """Abstract LLM provider interface."""

    @abstractmethod
    async def generate(
        self,
        model: str,
        messages: list[dict],
        *,
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        max_tokens: int = 4096,
        temperature: float | None = None,
        system: str | None = None,
    ) -> LLMResponse:
        """Generate a response from the LLM.

        Args:
            model: Model identifier (provider-specific).
            messages: List of ``{"role": "user" | "assistant", "content": str}``.
            tools: Tool definitions with keys ``name``, ``description`` and
                ``parameters`` (JSON Schema for the arguments).
            tool_choice: Name of a tool the model must call.
            max_tokens: Maximum output tokens.
            temperature: Sampling temperature; provider default when None.
            system: System prompt.

        Returns:
            LLMResponse with text and/or tool_calls.
        """

    async def complete_with_tool(
        self,
        model: str,
        prompt: str,
        tool: dict,
        *,
        temperature: float | None = None,
    ) -> ToolCall | None:
        """Force a single tool call for *prompt*; None if the model made none."""
        response = await self.generate(
            model,
            [{"role": "user", "content": prompt}],
            tools=[tool],
            tool_choice=tool["name"],
            temperature=temperature,
        )
        for call in response.tool_calls:
            if call.name == tool["name"]:
                return call
        return None
