"""Polling-based change detection with deduplication."""

from flowpieces.polling.engine import ItemsFetcher, PendingPoll, PollingDedupEngine
from flowpieces.polling.models import DedupState, DedupStrategy, PollingItem
from flowpieces.polling.store import MemoryStateStore, RedisStateStore, StateStore

__all__ = [
    "DedupState",
    "DedupStrategy",
    "ItemsFetcher",
    "MemoryStateStore",
    "PendingPoll",
    "PollingDedupEngine",
    "PollingItem",
    "RedisStateStore",
    "StateStore",
]
