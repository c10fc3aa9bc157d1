"""Trigger endpoints: view dropdown options and test runs."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from flowpieces.common.errors import AuthError, ConfigError, FetchError
from flowpieces.common.logging import get_logger
from flowpieces.triggers import get_trigger, view_dropdown

log = get_logger(__name__)

router = APIRouter(prefix="/triggers", tags=["triggers"])


class PartialZendeskAuth(BaseModel):
    email: str = ""
    token: str = ""
    subdomain: str = ""


class TriggerTestBody(BaseModel):
    props: dict[str, Any] = Field(default_factory=dict)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ConfigError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, AuthError):
        return HTTPException(status_code=401, detail="Credentials rejected by the service")
    return HTTPException(status_code=502, detail=str(exc))


@router.post("/zendesk/views")
async def zendesk_views(auth: PartialZendeskAuth):
    """Resolve the view dropdown for (possibly incomplete) credentials."""
    try:
        state = await view_dropdown(auth.model_dump())
    except (ConfigError, AuthError, FetchError) as exc:
        raise _http_error(exc) from exc
    return state.model_dump()


@router.get("/{name}")
async def describe_trigger(name: str):
    """Trigger metadata for the host UI."""
    try:
        trigger = get_trigger(name)
    except ConfigError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {
        "name": trigger.name,
        "display_name": trigger.display_name,
        "description": trigger.description,
        "auth_description": trigger.auth_description,
        "strategy": trigger.strategy.value,
        "sample_data": trigger.sample_data,
    }


@router.post("/{name}/test")
async def test_trigger(name: str, body: TriggerTestBody):
    """Preview what the trigger would emit now."""
    try:
        trigger = get_trigger(name)
    except ConfigError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    try:
        items = await trigger.test(body.props)
    except (ConfigError, AuthError, FetchError) as exc:
        raise _http_error(exc) from exc
    except RedisError as exc:
        log.warning("trigger_state_unavailable", trigger=name, error=str(exc))
        raise HTTPException(status_code=503, detail="Trigger state store unavailable") from exc

    log.info("trigger_tested", trigger=name, items=len(items))
    return {"items": [{"id": item.id, "data": item.data} for item in items]}
