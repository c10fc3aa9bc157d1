"""Redis async client shared by the polling state store, locks and queue."""

from __future__ import annotations

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from flowpieces.common.logging import get_logger
from flowpieces.common.settings import get_settings

log = get_logger(__name__)

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return the process-wide client, connecting on first use."""
    global _client
    if _client is None:
        settings = get_settings()
        client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            health_check_interval=30,
        )
        await client.ping()
        _client = client
        log.info("redis_connected", url=settings.redis_url)
    return _client


async def redis_healthy() -> tuple[bool, str]:
    """Ping Redis and report ``(ok, detail)`` for status endpoints."""
    try:
        client = await get_redis()
        await client.ping()
    except (RedisError, OSError) as exc:
        return False, f"error: {exc}"
    return True, "connected"


async def close_redis() -> None:
    """Close the Redis connection."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        log.info("redis_closed")
