"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from flowpieces.common.redis_client import redis_healthy
from flowpieces.common.settings import get_settings
from flowpieces.reasoning.providers import provider_available

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Basic health check; returns 200 if the process is alive."""
    return {"status": "ok", "service": get_settings().service_name}


@router.get("/status")
async def status():
    """Redis connectivity and copilot configuration."""
    redis_ok, redis_detail = await redis_healthy()
    settings = get_settings()
    return {
        "status": "ok" if redis_ok else "degraded",
        "service": settings.service_name,
        "redis": redis_detail,
        "copilot": {
            "instance_type": settings.copilot_instance_type,
            "configured": provider_available(),
        },
    }
