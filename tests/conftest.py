"""Shared pytest fixtures."""

from __future__ import annotations

from typing import Any

import pytest

import flowpieces.common.settings as settings_module
from flowpieces.polling import MemoryStateStore, PollingItem
from flowpieces.reasoning.providers import reset_provider


@pytest.fixture(autouse=True)
def _reset_singletons():
    settings_module._settings = None
    reset_provider()
    yield
    settings_module._settings = None
    reset_provider()


class FakeFetcher:
    """Async fetch function returning a configurable page; records calls."""

    def __init__(self, items: list[PollingItem] | None = None) -> None:
        self.items = items or []
        self.error: Exception | None = None
        self.calls = 0

    async def __call__(self, props: Any) -> list[PollingItem]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def zendesk_props() -> dict[str, Any]:
    return {
        "authentication": {
            "email": "agent@acme.com",
            "token": "secret-token",
            "subdomain": "acme",
        },
        "view_id": "360001",
    }
