"""Pydantic domain models shared across the application."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class TriggerEvent(BaseModel):
    """An item a polling trigger emitted as new, queued for the flow engine."""

    id: UUID = Field(default_factory=uuid4)
    trigger: str
    instance_key: str
    item_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def idempotency_key(self) -> str:
        return f"{self.trigger}:{self.instance_key}:{self.item_id}"
