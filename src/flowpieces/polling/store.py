"""Persistence for dedup state, keyed by trigger instance."""

from __future__ import annotations

from typing import Protocol

import redis.asyncio as aioredis

from flowpieces.common.redis_client import get_redis
from flowpieces.polling.models import DedupState
from flowpieces.queue.events import state_key


class StateStore(Protocol):
    async def get(self, key: str) -> DedupState | None: ...

    async def put(self, key: str, state: DedupState) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisStateStore:
    """Stores each state as a JSON string under ``flowpieces:polling:state:<key>``.

    States have no TTL; they live until the trigger instance is disabled.
    """

    def __init__(self, redis: aioredis.Redis | None = None) -> None:
        self._redis = redis

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def get(self, key: str) -> DedupState | None:
        redis = await self._client()
        raw = await redis.get(state_key(key))
        if raw is None:
            return None
        return DedupState.model_validate_json(raw)

    async def put(self, key: str, state: DedupState) -> None:
        redis = await self._client()
        await redis.set(state_key(key), state.model_dump_json())

    async def delete(self, key: str) -> None:
        redis = await self._client()
        await redis.delete(state_key(key))


class MemoryStateStore:
    """In-process store. States are kept serialized, as Redis would."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> DedupState | None:
        raw = self._data.get(key)
        return DedupState.model_validate_json(raw) if raw is not None else None

    async def put(self, key: str, state: DedupState) -> None:
        self._data[key] = state.model_dump_json()

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data
