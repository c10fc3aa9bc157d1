"""Provider factory: picks the copilot backend from settings once per process."""

from __future__ import annotations

from flowpieces.common.errors import ConfigError
from flowpieces.common.settings import Settings, get_settings
from flowpieces.reasoning.providers._base import LLMProvider

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
INSTANCE_TYPES = ("openai", "azure_openai", "openrouter")

_provider: LLMProvider | None = None
_cached_provider_name: str | None = None


def _active_provider_name() -> str:
    return get_settings().copilot_instance_type.lower()


def _build_provider(name: str, settings: Settings) -> LLMProvider:
    from flowpieces.reasoning.providers._openai import OpenAIProvider

    if name == "openai":
        if not settings.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is required when COPILOT_INSTANCE_TYPE=openai")
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            base_url=settings.openai_api_base_url or None,
        )

    if name == "azure_openai":
        if not settings.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is required when COPILOT_INSTANCE_TYPE=azure_openai")
        if not settings.azure_openai_endpoint or not settings.azure_openai_api_version:
            raise ConfigError(
                "AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_VERSION are required "
                "when COPILOT_INSTANCE_TYPE=azure_openai"
            )
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            base_url=settings.azure_openai_endpoint,
            default_query={"api-version": settings.azure_openai_api_version},
            default_headers={"api-key": settings.openai_api_key},
            integration_name="AzureOpenAI",
        )

    if name == "openrouter":
        if not settings.openrouter_api_key:
            raise ConfigError(
                "OPENROUTER_API_KEY is required when COPILOT_INSTANCE_TYPE=openrouter"
            )
        return OpenAIProvider(
            api_key=settings.openrouter_api_key,
            base_url=OPENROUTER_BASE_URL,
            integration_name="OpenRouter",
        )

    raise ConfigError(
        f"Unknown COPILOT_INSTANCE_TYPE {name!r}; expected one of {', '.join(INSTANCE_TYPES)}"
    )


def get_provider() -> LLMProvider:
    """Return the configured LLM provider (singleton per instance type)."""
    global _provider, _cached_provider_name

    name = _active_provider_name()
    if _provider is not None and _cached_provider_name == name:
        return _provider

    _provider = _build_provider(name, get_settings())
    _cached_provider_name = name
    return _provider


def provider_available() -> bool:
    """Check if the active provider has the settings it needs."""
    settings = get_settings()
    name = _active_provider_name()
    if name == "openai":
        return bool(settings.openai_api_key)
    if name == "azure_openai":
        return bool(
            settings.openai_api_key
            and settings.azure_openai_endpoint
            and settings.azure_openai_api_version
        )
    if name == "openrouter":
        return bool(settings.openrouter_api_key)
    return False


def reset_provider() -> None:
    """Reset the singleton (for testing)."""
    global _provider, _cached_provider_name
    _provider = None
    _cached_provider_name = None
