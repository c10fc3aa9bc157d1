"""Redis-based single-flight lock: one poll cycle per trigger instance at a time."""

from __future__ import annotations

import uuid

from flowpieces.common.logging import get_logger
from flowpieces.common.redis_client import get_redis
from flowpieces.common.settings import get_settings
from flowpieces.queue.events import lock_key

log = get_logger(__name__)

# Compare-and-delete in one step so an expired lock retaken by another
# worker is never removed
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


async def acquire_trigger_lock(instance_key: str) -> str | None:
    """Try once to take the lock. Returns the owner token, or None if held."""
    redis = await get_redis()
    token = uuid.uuid4().hex
    acquired = await redis.set(
        lock_key(f"trigger:{instance_key}"),
        token,
        nx=True,
        ex=get_settings().lock_ttl_seconds,
    )
    if acquired:
        log.debug("trigger_lock_acquired", instance=instance_key)
        return token
    log.info("trigger_lock_busy", instance=instance_key)
    return None


async def release_trigger_lock(instance_key: str, token: str) -> None:
    """Release the lock if this caller still owns it (it may have expired)."""
    redis = await get_redis()
    released = await redis.eval(_RELEASE_SCRIPT, 1, lock_key(f"trigger:{instance_key}"), token)
    if released:
        log.debug("trigger_lock_released", instance=instance_key)
    else:
        log.warning("trigger_lock_lost", instance=instance_key)
