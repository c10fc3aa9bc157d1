"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from flowpieces.common.settings import Settings


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("360001", ["360001"]),
        ("11,12", ["11", "12"]),
        (" 11 , 12 ,", ["11", "12"]),
        ('["11", "12"]', ["11", "12"]),
        ("[11, 12]", ["11", "12"]),
        ("", []),
    ],
)
def test_zendesk_view_ids_formats(monkeypatch, raw, expected):
    monkeypatch.setenv("ZENDESK_VIEW_IDS", raw)
    assert Settings().zendesk_view_ids == expected


def test_zendesk_view_ids_default_empty(monkeypatch):
    monkeypatch.delenv("ZENDESK_VIEW_IDS", raising=False)
    assert Settings().zendesk_view_ids == []


def test_defaults(monkeypatch):
    for name in ("PERSIST_ON_TEST", "LOCK_TTL_SECONDS", "COPILOT_MODEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.persist_on_test is False
    assert settings.lock_ttl_seconds == 120
    assert settings.copilot_model == "gpt-4o"
