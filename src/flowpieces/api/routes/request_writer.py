"""Request writer endpoint."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from flowpieces.common.errors import ConfigError, IntegrationError, RequestWriterError
from flowpieces.common.logging import get_logger
from flowpieces.reasoning.request_writer import generate_request_details

log = get_logger(__name__)

router = APIRouter(tags=["copilot"])


class RequestWriterBody(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)


@router.post("/request-writer")
async def write_request(body: RequestWriterBody):
    """Describe the HTTP API call for a natural-language prompt."""
    try:
        details = await generate_request_details(body.prompt)
    except ConfigError as exc:
        log.warning("request_writer_unconfigured", error=str(exc))
        raise HTTPException(status_code=503, detail="Request writer is not configured") from exc
    except (RequestWriterError, IntegrationError) as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return details.model_dump(by_alias=True)
