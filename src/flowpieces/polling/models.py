"""Item and state types for the polling dedup engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class DedupStrategy(StrEnum):
    LAST_ITEM = "last_item"
    TIMEBASED = "timebased"
    SEEN_IDS = "seen_ids"


@dataclass
class PollingItem:
    """One fetched item: a dedup key plus an opaque payload.

    ``timestamp`` (epoch seconds) is only read by the TIMEBASED strategy.
    """

    id: str | int
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float | None = None


class DedupState(BaseModel):
    """Persisted marker for one trigger instance.

    A state with no marker is an empty baseline: the instance was enabled
    while the source had no items, so everything fetched later is new.
    """

    strategy: DedupStrategy = DedupStrategy.LAST_ITEM
    last_item_id: str | int | None = None
    last_timestamp: float | None = None
    seen_ids: list[str] = Field(default_factory=list)
