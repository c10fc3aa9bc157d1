"""Polling change detection with deduplication.

The engine is invoked by an external scheduler. Each call is one unit of
work: fetch, compare against the persisted marker, persist the new marker.
It holds no locks of its own; callers must not run two cycles for the same
trigger instance concurrently.

The fetch function must return items newest-first. The engine cannot verify
this and a violation silently breaks dedup for the LAST_ITEM strategy.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from flowpieces.common.logging import get_logger
from flowpieces.polling.models import DedupState, DedupStrategy, PollingItem
from flowpieces.polling.store import StateStore

log = get_logger(__name__)

P = TypeVar("P")

ItemsFetcher = Callable[[P], Awaitable[list[PollingItem]]]

DEFAULT_SEEN_CAPACITY = 500


def _same_id(a: str | int | None, b: str | int | None) -> bool:
    # Ids survive a JSON round trip as int or str depending on the source
    return a is not None and b is not None and str(a) == str(b)


def _require_timestamps(items: list[PollingItem]) -> list[float]:
    stamps = []
    for item in items:
        if item.timestamp is None:
            raise ValueError(f"TIMEBASED strategy requires a timestamp on item {item.id!r}")
        stamps.append(item.timestamp)
    return stamps


@dataclass
class PendingPoll:
    """New items from one cycle plus the marker to store once they are delivered."""

    store: StateStore
    key: str
    items: list[PollingItem]
    state: DedupState | None
    new_state: DedupState | None

    @property
    def changed(self) -> bool:
        return self.new_state is not None and self.new_state != self.state

    async def commit(self) -> None:
        """Persist the new marker. Unchanged state is not rewritten."""
        if self.changed:
            await self.store.put(self.key, self.new_state)
            self.state = self.new_state


class PollingDedupEngine(Generic[P]):
    """Decides which fetched items are new since the previous cycle.

    Args:
        fetch_items: ``async (props) -> list[PollingItem]``, newest-first.
        store: Where ``DedupState`` is persisted between invocations.
        key_for: Maps props to the trigger-instance key used in the store.
        strategy: Dedup strategy, LAST_ITEM by default.
        seen_capacity: Bound on remembered ids for SEEN_IDS.
        persist_on_test: Whether ``test()`` advances the stored marker.
    """

    def __init__(
        self,
        fetch_items: ItemsFetcher,
        store: StateStore,
        key_for: Callable[[P], str],
        *,
        strategy: DedupStrategy = DedupStrategy.LAST_ITEM,
        seen_capacity: int = DEFAULT_SEEN_CAPACITY,
        persist_on_test: bool = False,
    ) -> None:
        if seen_capacity < 1:
            raise ValueError("seen_capacity must be at least 1")
        self._fetch_items = fetch_items
        self._store = store
        self._key_for = key_for
        self.strategy = strategy
        self.seen_capacity = seen_capacity
        self.persist_on_test = persist_on_test

    # -- Lifecycle -----------------------------------------------------------

    async def on_enable(self, props: P) -> None:
        """Record a baseline for the items currently present. Emits nothing.

        Fetch errors propagate and leave the store untouched.
        """
        key = self._key_for(props)
        items = await self._fetch_items(props)
        state = self._baseline(items)
        await self._store.put(key, state)
        log.info(
            "polling_enabled",
            instance=key,
            strategy=self.strategy.value,
            items=len(items),
            marker=state.last_item_id,
        )

    async def on_disable(self, props: P) -> None:
        """Forget the stored state. Safe to call when none exists."""
        key = self._key_for(props)
        await self._store.delete(key)
        log.info("polling_disabled", instance=key)

    async def is_enabled(self, props: P) -> bool:
        """True once a baseline (or a later marker) is stored for *props*."""
        return await self._store.get(self._key_for(props)) is not None

    async def poll(self, props: P) -> list[PollingItem]:
        """Fetch and return the items that are new since the last cycle."""
        pending = await self.collect(props)
        await pending.commit()
        return pending.items

    async def test(self, props: P) -> list[PollingItem]:
        """Same as ``poll``; persists only when ``persist_on_test`` is set."""
        pending = await self.collect(props)
        if self.persist_on_test:
            await pending.commit()
        return pending.items

    async def collect(self, props: P) -> PendingPoll:
        """Compute the new items without persisting anything.

        The caller delivers ``pending.items`` and then calls
        ``pending.commit()``. If delivery fails the marker stays put and the
        same items come back on the next cycle.
        """
        key = self._key_for(props)
        state = await self._store.get(key)

        # Fetch errors propagate before anything is written
        items = await self._fetch_items(props)

        if not items:
            log.debug("polling_no_items", instance=key)
            return PendingPoll(self._store, key, [], state, state)

        if state is None:
            # Never enabled: treat only the newest item as new, no backfill
            log.info("polling_state_missing", instance=key, newest=items[0].id)
            new_items = items[:1]
            new_state = self._baseline(items)
        else:
            new_items, new_state = self._compare(key, items, state)

        log.info(
            "polling_cycle_completed",
            instance=key,
            strategy=self.strategy.value,
            fetched=len(items),
            new=len(new_items),
        )
        return PendingPoll(self._store, key, new_items, state, new_state)

    # -- Comparison ----------------------------------------------------------

    def _baseline(self, items: list[PollingItem]) -> DedupState:
        state = DedupState(strategy=self.strategy)
        if not items:
            return state

        if self.strategy is DedupStrategy.LAST_ITEM:
            state.last_item_id = items[0].id
        elif self.strategy is DedupStrategy.TIMEBASED:
            state.last_timestamp = max(_require_timestamps(items))
        else:
            state.seen_ids = [str(i.id) for i in items[: self.seen_capacity]]
        return state

    def _compare(
        self, key: str, items: list[PollingItem], state: DedupState
    ) -> tuple[list[PollingItem], DedupState]:
        if self.strategy is DedupStrategy.LAST_ITEM:
            return self._compare_last_item(key, items, state)
        if self.strategy is DedupStrategy.TIMEBASED:
            return self._compare_timebased(items, state)
        return self._compare_seen_ids(items, state)

    def _compare_last_item(
        self, key: str, items: list[PollingItem], state: DedupState
    ) -> tuple[list[PollingItem], DedupState]:
        marker = state.last_item_id
        new_items: list[PollingItem] = []
        found = False
        for item in items:
            if _same_id(item.id, marker):
                found = True
                break
            new_items.append(item)

        if marker is not None and not found:
            log.warning("polling_marker_not_found", instance=key, marker=marker, fetched=len(items))

        new_state = state.model_copy(update={"strategy": self.strategy})
        # Re-confirming the same marker compares equal and is not rewritten
        if not _same_id(items[0].id, marker):
            new_state.last_item_id = items[0].id
        return new_items, new_state

    def _compare_timebased(
        self, items: list[PollingItem], state: DedupState
    ) -> tuple[list[PollingItem], DedupState]:
        stamps = _require_timestamps(items)
        high_water = state.last_timestamp
        if high_water is None:
            new_items = list(items)
        else:
            new_items = [i for i, ts in zip(items, stamps) if ts > high_water]

        newest = max(stamps)
        if high_water is not None:
            newest = max(newest, high_water)
        new_state = state.model_copy(update={"strategy": self.strategy, "last_timestamp": newest})
        return new_items, new_state

    def _compare_seen_ids(
        self, items: list[PollingItem], state: DedupState
    ) -> tuple[list[PollingItem], DedupState]:
        seen = set(state.seen_ids)
        new_items = [i for i in items if str(i.id) not in seen]

        # Fetched ids first so the oldest remembered ids fall off the end
        merged = list(dict.fromkeys([str(i.id) for i in items] + state.seen_ids))
        new_state = state.model_copy(
            update={"strategy": self.strategy, "seen_ids": merged[: self.seen_capacity]}
        )
        return new_items, new_state
