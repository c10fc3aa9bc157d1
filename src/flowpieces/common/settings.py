"""Application settings from environment variables."""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """All configuration loaded from environment variables."""

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    # --- Service ---
    service_name: str = "flowpieces"
    log_level: str = "INFO"
    environment: str = "development"

    # --- Redis ---
    redis_url: str = "redis://localhost:6379/0"

    # --- Polling ---
    poll_interval_seconds: int = 60
    seen_ids_capacity: int = 500
    lock_ttl_seconds: int = 120
    persist_on_test: bool = False  # test() runs dry unless enabled
    http_timeout_seconds: float = 30.0

    # --- Zendesk (worker-managed trigger instances) ---
    zendesk_subdomain: str = ""
    zendesk_email: str = ""
    zendesk_api_token: str = ""
    # "360001", "11,12" or a JSON list
    zendesk_view_ids: Annotated[list[str], NoDecode] = Field(default_factory=list)

    # --- Request writer (copilot) ---
    copilot_instance_type: str = "openai"  # "openai", "azure_openai" or "openrouter"
    copilot_model: str = "gpt-4o"
    copilot_temperature: float = 0.2

    # --- OpenAI ---
    openai_api_key: str = ""
    openai_api_base_url: str = ""

    # --- Azure OpenAI ---
    azure_openai_endpoint: str = ""
    azure_openai_api_version: str = ""

    # --- OpenRouter ---
    openrouter_api_key: str = ""

    # --- API server ---
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    @field_validator("zendesk_view_ids", mode="before")
    @classmethod
    def _split_view_ids(cls, v: Any) -> Any:
        if isinstance(v, int):
            return [str(v)]
        if not isinstance(v, str):
            return v
        v = v.strip()
        if v.startswith("["):
            return [str(i) for i in json.loads(v)]
        return [part.strip() for part in v.split(",") if part.strip()]


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
