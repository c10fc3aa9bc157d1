"""Publish trigger events to the Redis queue."""

from __future__ import annotations

from redis.exceptions import RedisError

from flowpieces.common.logging import get_logger
from flowpieces.common.models import TriggerEvent
from flowpieces.common.redis_client import get_redis
from flowpieces.queue.events import (
    EVENT_TTL_SECONDS,
    QUEUE_KEY,
    compute_score,
    event_hash_key,
    idempotency_key,
)

log = get_logger(__name__)


async def publish_trigger_event(event: TriggerEvent) -> bool:
    """Enqueue an event: payload under its own key, id in the sorted set.

    Returns True if published, False if an event with the same idempotency
    key was published within the TTL.
    """
    redis = await get_redis()

    guard = idempotency_key(event.idempotency_key)
    claimed = await redis.set(guard, str(event.id), nx=True, ex=EVENT_TTL_SECONDS)
    if not claimed:
        log.info("trigger_event_deduplicated", key=event.idempotency_key)
        return False

    score = compute_score(int(event.created_at.timestamp() * 1000))
    try:
        await redis.set(event_hash_key(str(event.id)), event.model_dump_json(), ex=EVENT_TTL_SECONDS)
        await redis.zadd(QUEUE_KEY, {str(event.id): score})
    except RedisError:
        # Free the key so a retry is not mistaken for a duplicate
        await redis.delete(guard)
        raise

    log.info(
        "trigger_event_published",
        event_id=str(event.id),
        trigger=event.trigger,
        item_id=event.item_id,
    )
    return True
