"""Tests for the event publisher, key layout and trigger locks."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from flowpieces.common.models import TriggerEvent
from flowpieces.queue.events import QUEUE_KEY, compute_score, event_hash_key, lock_key
from flowpieces.queue.publisher import publish_trigger_event
from flowpieces.worker.lock import acquire_trigger_lock, release_trigger_lock


def _event(**overrides) -> TriggerEvent:
    defaults = {
        "trigger": "new_ticket_in_view",
        "instance_key": "abc123",
        "item_id": "105",
        "payload": {"id": 105, "subject": "Printer on fire"},
        "created_at": datetime(2024, 5, 1, 10, 0, tzinfo=UTC),
    }
    defaults.update(overrides)
    return TriggerEvent(**defaults)


class TestKeys:
    def test_compute_score_uses_timestamp(self):
        assert compute_score(1_700_000_000_000) == 1.7e12

    def test_key_helpers(self):
        assert event_hash_key("e1") == "flowpieces:event:e1"
        assert lock_key("trigger:x") == "flowpieces:lock:trigger:x"

    def test_idempotency_key(self):
        assert _event().idempotency_key == "new_ticket_in_view:abc123:105"


class TestPublisher:
    async def test_publishes_payload_and_queue_entry(self):
        redis = AsyncMock()
        redis.set.return_value = True
        event = _event()

        with patch("flowpieces.queue.publisher.get_redis", return_value=redis):
            assert await publish_trigger_event(event) is True

        guard_call, payload_call = redis.set.call_args_list
        assert guard_call.args[0] == "flowpieces:idempotency:new_ticket_in_view:abc123:105"
        assert guard_call.kwargs["nx"] is True

        assert payload_call.args[0] == event_hash_key(str(event.id))
        assert json.loads(payload_call.args[1])["payload"]["subject"] == "Printer on fire"

        redis.zadd.assert_awaited_once_with(
            QUEUE_KEY, {str(event.id): compute_score(1714557600000)}
        )

    async def test_duplicate_is_not_enqueued(self):
        redis = AsyncMock()
        redis.set.return_value = None

        with patch("flowpieces.queue.publisher.get_redis", return_value=redis):
            assert await publish_trigger_event(_event()) is False

        assert redis.set.await_count == 1
        redis.zadd.assert_not_called()

    async def test_failed_write_releases_idempotency_key(self):
        redis = AsyncMock()
        redis.set.return_value = True
        redis.zadd.side_effect = RedisConnectionError("blip")

        with patch("flowpieces.queue.publisher.get_redis", return_value=redis):
            with pytest.raises(RedisConnectionError):
                await publish_trigger_event(_event())

        redis.delete.assert_awaited_once_with(
            "flowpieces:idempotency:new_ticket_in_view:abc123:105"
        )


class TestTriggerLock:
    async def test_acquire_returns_token(self):
        redis = AsyncMock()
        redis.set.return_value = True

        with patch("flowpieces.worker.lock.get_redis", return_value=redis):
            token = await acquire_trigger_lock("abc")

        assert token
        key, value = redis.set.call_args.args
        assert key == "flowpieces:lock:trigger:abc"
        assert value == token
        assert redis.set.call_args.kwargs["nx"] is True
        assert redis.set.call_args.kwargs["ex"] == 120

    async def test_acquire_when_held_returns_none(self):
        redis = AsyncMock()
        redis.set.return_value = None

        with patch("flowpieces.worker.lock.get_redis", return_value=redis):
            assert await acquire_trigger_lock("abc") is None

    async def test_release_is_single_compare_and_delete(self):
        redis = AsyncMock()
        redis.eval.return_value = 1

        with patch("flowpieces.worker.lock.get_redis", return_value=redis):
            await release_trigger_lock("abc", "mine")

        script, numkeys, key, token = redis.eval.call_args.args
        assert 'redis.call("get", KEYS[1]) == ARGV[1]' in script
        assert (numkeys, key, token) == (1, "flowpieces:lock:trigger:abc", "mine")
        redis.get.assert_not_called()
        redis.delete.assert_not_called()

    async def test_release_of_lost_lock_deletes_nothing(self):
        redis = AsyncMock()
        redis.eval.return_value = 0

        with patch("flowpieces.worker.lock.get_redis", return_value=redis):
            await release_trigger_lock("abc", "mine")

        redis.eval.assert_awaited_once()
        redis.delete.assert_not_called()
