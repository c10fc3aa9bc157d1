"""OpenAI-compatible provider: OpenAI, Azure OpenAI and OpenRouter."""

from __future__ import annotations

import json

import openai
from openai import AsyncOpenAI

from flowpieces.common.errors import IntegrationError
from flowpieces.common.logging import get_logger
from flowpieces.reasoning.providers._base import LLMProvider, LLMResponse, ToolCall

log = get_logger(__name__)


def _build_openai_tools(tool_defs: list[dict]) -> list[dict]:
    """Convert tool definitions to OpenAI function-calling format."""
    result = []
    for td in tool_defs:
        params = td.get("parameters") or td.get("input_schema") or {"type": "object"}
        result.append({
            "type": "function",
            "function": {
                "name": td["name"],
                "description": td.get("description", ""),
                "parameters": params,
            },
        })
    return result


def _build_openai_messages(messages: list[dict], system: str | None) -> list[dict]:
    """Convert unified messages to OpenAI chat format."""
    result: list[dict] = []
    if system:
        result.append({"role": "system", "content": system})
    for msg in messages:
        if msg["role"] in ("user", "assistant"):
            result.append({"role": msg["role"], "content": msg.get("content") or ""})
    return result


class OpenAIProvider(LLMProvider):
    """LLM provider on the OpenAI SDK.

    ``base_url``, ``default_query`` and ``default_headers`` point the same
    client at Azure OpenAI or OpenRouter.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        default_query: dict[str, str] | None = None,
        default_headers: dict[str, str] | None = None,
        integration_name: str = "OpenAI",
    ) -> None:
        self.integration_name = integration_name
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            default_query=default_query,
            default_headers=default_headers,
        )

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
        kwargs: dict = {
            "model": model,
            "messages": _build_openai_messages(messages, system),
            "max_tokens": max_tokens,
        }
        if tools:
            kwargs["tools"] = _build_openai_tools(tools)
        if tool_choice:
            kwargs["tool_choice"] = {"type": "function", "function": {"name": tool_choice}}
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            log.warning(
                "llm_api_error",
                provider=self.integration_name,
                status_code=exc.status_code,
                detail=str(exc)[:500],
            )
            raise IntegrationError(
                integration=self.integration_name,
                detail=f"API error {exc.status_code}",
                status_code=exc.status_code,
            ) from exc
        except openai.APIError as exc:
            log.warning("llm_network_error", provider=self.integration_name, error=str(exc))
            raise IntegrationError(integration=self.integration_name, detail=str(exc)) from exc

        msg = response.choices[0].message

        tool_calls: list[ToolCall] = []
        for tc in msg.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments)
            except (json.JSONDecodeError, TypeError):
                arguments = {}
            tool_calls.append(
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=arguments,
                    raw_arguments=tc.function.arguments or "",
                )
            )

        input_tokens = response.usage.prompt_tokens if response.usage else 0
        output_tokens = response.usage.completion_tokens if response.usage else 0

        return LLMResponse(
            text=msg.content,
            tool_calls=tool_calls,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
