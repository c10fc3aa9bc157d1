"""Tests for LLM provider abstraction."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from flowpieces.common.errors import ConfigError, IntegrationError
from flowpieces.reasoning.providers import (
    LLMResponse,
    ToolCall,
    get_provider,
    provider_available,
    reset_provider,
)
from flowpieces.reasoning.providers._openai import (
    OpenAIProvider,
    _build_openai_messages,
    _build_openai_tools,
)

_TOOL = {
    "name": "fetch_api_details",
    "description": "Fetch API details",
    "parameters": {"type": "object", "properties": {"method": {"type": "string"}}},
}


def _mock_completion(*, text=None, tool_calls=None, usage=(12, 7)) -> MagicMock:
    msg = MagicMock()
    msg.content = text
    msg.tool_calls = tool_calls

    response = MagicMock()
    response.choices = [MagicMock(message=msg)]
    response.usage.prompt_tokens, response.usage.completion_tokens = usage
    return response


def _mock_tool_call(name: str, arguments: str, call_id: str = "call_1") -> MagicMock:
    tc = MagicMock()
    tc.id = call_id
    tc.function.name = name
    tc.function.arguments = arguments
    return tc


def _provider_with(create: AsyncMock) -> OpenAIProvider:
    provider = OpenAIProvider(api_key="test-key")
    provider._client = MagicMock()
    provider._client.chat.completions.create = create
    return provider


# ===========================================================================
# Dataclasses and conversion helpers
# ===========================================================================


class TestDataclasses:
    def test_llm_response_defaults(self):
        r = LLMResponse()
        assert r.text is None
        assert r.tool_calls == []
        assert r.input_tokens == 0

    def test_tool_call_keeps_raw_arguments(self):
        tc = ToolCall(id="c", name="t", arguments={"a": 1}, raw_arguments='{"a": 1}')
        assert tc.raw_arguments == '{"a": 1}'


class TestConversion:
    def test_build_openai_tools(self):
        result = _build_openai_tools([_TOOL])
        assert result == [{
            "type": "function",
            "function": {
                "name": "fetch_api_details",
                "description": "Fetch API details",
                "parameters": _TOOL["parameters"],
            },
        }]

    def test_build_openai_tools_defaults_schema(self):
        result = _build_openai_tools([{"name": "bare"}])
        assert result[0]["function"]["parameters"] == {"type": "object"}

    def test_build_openai_messages_with_system(self):
        result = _build_openai_messages([{"role": "user", "content": "hi"}], system="be terse")
        assert result == [
            {"role": "system", "content": "be terse"},
            {"role": "user", "content": "hi"},
        ]


# ===========================================================================
# OpenAIProvider
# ===========================================================================


class TestOpenAIProvider:
    async def test_forced_tool_call(self):
        create = AsyncMock(return_value=_mock_completion(
            tool_calls=[_mock_tool_call("fetch_api_details", '{"method": "GET"}')]
        ))
        provider = _provider_with(create)

        call = await provider.complete_with_tool("gpt-4o", "list users", _TOOL, temperature=0.2)

        assert call.name == "fetch_api_details"
        assert call.arguments == {"method": "GET"}
        assert call.raw_arguments == '{"method": "GET"}'

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"] == [{"role": "user", "content": "list users"}]
        assert kwargs["tool_choice"] == {
            "type": "function",
            "function": {"name": "fetch_api_details"},
        }
        assert kwargs["tools"][0]["function"]["name"] == "fetch_api_details"

    async def test_no_tool_call_returns_none(self):
        create = AsyncMock(return_value=_mock_completion(text="I cannot help"))
        provider = _provider_with(create)

        assert await provider.complete_with_tool("gpt-4o", "?", _TOOL) is None

    async def test_other_tool_ignored(self):
        create = AsyncMock(return_value=_mock_completion(
            tool_calls=[_mock_tool_call("something_else", "{}")]
        ))
        assert await _provider_with(create).complete_with_tool("gpt-4o", "?", _TOOL) is None

    async def test_unparseable_arguments_keep_raw(self):
        create = AsyncMock(return_value=_mock_completion(
            tool_calls=[_mock_tool_call("fetch_api_details", "{not json")]
        ))
        response = await _provider_with(create).generate("gpt-4o", [{"role": "user", "content": "x"}])

        assert response.tool_calls[0].arguments == {}
        assert response.tool_calls[0].raw_arguments == "{not json"
        assert response.input_tokens == 12
        assert response.output_tokens == 7

    async def test_temperature_omitted_when_none(self):
        create = AsyncMock(return_value=_mock_completion(text="ok"))
        await _provider_with(create).generate("gpt-4o", [{"role": "user", "content": "x"}])
        assert "temperature" not in create.call_args.kwargs
        assert "tool_choice" not in create.call_args.kwargs

    async def test_api_status_error_becomes_integration_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.APIStatusError(
            "rate limited", response=httpx.Response(429, request=request), body=None
        )
        provider = _provider_with(AsyncMock(side_effect=error))

        with pytest.raises(IntegrationError) as exc_info:
            await provider.generate("gpt-4o", [{"role": "user", "content": "x"}])
        assert exc_info.value.status_code == 429
        assert exc_info.value.integration == "OpenAI"

    async def test_connection_error_becomes_integration_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        provider = _provider_with(AsyncMock(side_effect=openai.APIConnectionError(request=request)))

        with pytest.raises(IntegrationError) as exc_info:
            await provider.generate("gpt-4o", [{"role": "user", "content": "x"}])
        assert exc_info.value.status_code is None


# ===========================================================================
# Factory
# ===========================================================================


class TestFactory:
    def test_openai_default(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_API_BASE_URL", "")

        with patch("flowpieces.reasoning.providers._openai.AsyncOpenAI") as mock_cls:
            provider = get_provider()

        assert isinstance(provider, OpenAIProvider)
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["base_url"] is None

    def test_openai_custom_base_url(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_API_BASE_URL", "https://proxy.internal/v1")

        with patch("flowpieces.reasoning.providers._openai.AsyncOpenAI") as mock_cls:
            get_provider()

        assert mock_cls.call_args.kwargs["base_url"] == "https://proxy.internal/v1"

    def test_azure_sends_api_version_and_key_header(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "azure_openai")
        monkeypatch.setenv("OPENAI_API_KEY", "az-key")
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://acme.openai.azure.com/openai/deployments/gpt4o")
        monkeypatch.setenv("AZURE_OPENAI_API_VERSION", "2024-02-01")

        with patch("flowpieces.reasoning.providers._openai.AsyncOpenAI") as mock_cls:
            provider = get_provider()

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["base_url"] == "https://acme.openai.azure.com/openai/deployments/gpt4o"
        assert kwargs["default_query"] == {"api-version": "2024-02-01"}
        assert kwargs["default_headers"] == {"api-key": "az-key"}
        assert provider.integration_name == "AzureOpenAI"

    def test_azure_requires_endpoint(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "azure_openai")
        monkeypatch.setenv("OPENAI_API_KEY", "az-key")
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "")
        monkeypatch.setenv("AZURE_OPENAI_API_VERSION", "2024-02-01")

        assert not provider_available()
        with pytest.raises(ConfigError, match="AZURE_OPENAI_ENDPOINT"):
            get_provider()

    def test_openrouter(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "openrouter")
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")

        with patch("flowpieces.reasoning.providers._openai.AsyncOpenAI") as mock_cls:
            get_provider()

        assert mock_cls.call_args.kwargs["base_url"] == "https://openrouter.ai/api/v1"

    def test_missing_openai_key_raises(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "")

        assert not provider_available()
        with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
            get_provider()

    def test_unknown_instance_type(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "llamafile")

        assert not provider_available()
        with pytest.raises(ConfigError, match="llamafile"):
            get_provider()

    def test_singleton_and_reset(self, monkeypatch):
        monkeypatch.setenv("COPILOT_INSTANCE_TYPE", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        p1 = get_provider()
        assert get_provider() is p1

        reset_provider()
        assert get_provider() is not p1
