"""Redis key layout and queue scoring."""

from __future__ import annotations

import time

# Redis key constants
QUEUE_KEY = "flowpieces:queue:events"
EVENT_HASH_PREFIX = "flowpieces:event:"
STATE_PREFIX = "flowpieces:polling:state:"
LOCK_PREFIX = "flowpieces:lock:"
IDEMPOTENCY_PREFIX = "flowpieces:idempotency:"

EVENT_TTL_SECONDS = 86400


def compute_score(timestamp_ms: int | None = None) -> float:
    """Sorted set score: creation time in ms, so consumers read oldest first."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return float(timestamp_ms)


def event_hash_key(event_id: str) -> str:
    """Redis key for an event payload."""
    return f"{EVENT_HASH_PREFIX}{event_id}"


def state_key(instance_key: str) -> str:
    """Redis key for a trigger instance's dedup state."""
    return f"{STATE_PREFIX}{instance_key}"


def idempotency_key(key: str) -> str:
    """Redis key guarding against publishing the same event twice."""
    return f"{IDEMPOTENCY_PREFIX}{key}"


def lock_key(resource: str) -> str:
    """Redis key for a single-flight lock."""
    return f"{LOCK_PREFIX}{resource}"
