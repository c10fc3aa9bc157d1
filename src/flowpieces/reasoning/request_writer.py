"""Request writer: turn a natural-language prompt into an HTTP API call description.

The model is forced to call a single ``fetch_api_details`` tool; its JSON
arguments are the result.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowpieces.common.errors import RequestWriterError
from flowpieces.common.logging import get_logger
from flowpieces.common.settings import get_settings
from flowpieces.reasoning.providers import get_provider

log = get_logger(__name__)

TOOL_NAME = "fetch_api_details"
HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})


class ApiRequestDetails(BaseModel):
    """Structured description of one HTTP API call."""

    model_config = ConfigDict(populate_by_name=True)

    method: str
    base_url: str = Field(alias="baseURL")
    query_params: dict[str, Any] = Field(default_factory=dict, alias="queryParams")
    json_body_schema: dict[str, Any] = Field(default_factory=dict, alias="jsonBodySchema")

    @field_validator("method")
    @classmethod
    def _normalise_method(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method {v!r}")
        return v


def build_request_tools() -> list[dict]:
    """Tool definitions offered to the model (a single forced tool)."""
    return [
        {
            "name": TOOL_NAME,
            "description": "Fetch API details from documentation of a service based on user prompt.",
            "parameters": {
                "type": "object",
                "properties": {
                    "method": {
                        "type": "string",
                        "description": "The HTTP method of the request (GET, POST, PUT, PATCH, DELETE).",
                    },
                    "baseURL": {
                        "type": "string",
                        "description": "The base URL of the API service endpoint.",
                    },
                    "queryParams": {
                        "type": "object",
                        "description": "Query parameters required by this service API, expected as key-value pairs.",
                        "additionalProperties": {
                            "type": "string",
                            "description": "Each key represents the parameter name and the value is a description or default value.",
                        },
                    },
                    "jsonBodySchema": {
                        "type": "object",
                        "description": (
                            "JSON schema of the body required for POST, PATCH, and PUT requests, "
                            "specified as key-value pairs where each key is a field name and the "
                            "value describes the field."
                        ),
                        "additionalProperties": {
                            "type": "string",
                            "description": "Each key represents the field name and the value is a description or type of the field.",
                        },
                    },
                },
                "required": ["method", "baseURL", "queryParams", "jsonBodySchema"],
            },
        }
    ]


async def generate_request(prompt: str) -> str:
    """Ask the model for the API call described by *prompt*.

    Returns the raw JSON arguments of the ``fetch_api_details`` tool call.
    Raises ``RequestWriterError`` when the prompt is empty or the model
    makes no tool call, ``ConfigError`` when no provider is configured.
    """
    prompt = prompt.strip()
    if not prompt:
        raise RequestWriterError("prompt is empty")

    settings = get_settings()
    provider = get_provider()
    (tool,) = build_request_tools()

    log.debug("request_writer_prompting", prompt=prompt[:200], model=settings.copilot_model)
    call = await provider.complete_with_tool(
        settings.copilot_model,
        prompt,
        tool,
        temperature=settings.copilot_temperature,
    )
    if call is None:
        log.warning("request_writer_no_tool_call", model=settings.copilot_model)
        raise RequestWriterError("model returned no tool call")

    log.debug("request_writer_response", tool=call.name, arguments=call.raw_arguments[:500])
    return call.raw_arguments


async def generate_request_details(prompt: str) -> ApiRequestDetails:
    """``generate_request`` parsed and validated into ``ApiRequestDetails``."""
    raw = await generate_request(prompt)
    try:
        return ApiRequestDetails.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        log.warning("request_writer_invalid_arguments", error=str(exc)[:500])
        raise RequestWriterError(f"model returned invalid request details: {exc}") from exc
