"""Polling triggers exposed to the platform host."""

from __future__ import annotations

from flowpieces.common.errors import ConfigError
from flowpieces.polling import StateStore
from flowpieces.triggers._base import DropdownOption, DropdownState, PollingTrigger
from flowpieces.triggers.zendesk import (
    NewTicketInViewProps,
    NewTicketInViewTrigger,
    ZendeskAuth,
    list_view_options,
    view_dropdown,
)

TRIGGERS: dict[str, type[PollingTrigger]] = {
    NewTicketInViewTrigger.name: NewTicketInViewTrigger,
}


def get_trigger(name: str, store: StateStore | None = None, **kwargs) -> PollingTrigger:
    """Instantiate a registered trigger by name."""
    try:
        trigger_cls = TRIGGERS[name]
    except KeyError:
        raise ConfigError(f"unknown trigger: {name}") from None
    return trigger_cls(store, **kwargs)


__all__ = [
    "TRIGGERS",
    "DropdownOption",
    "DropdownState",
    "NewTicketInViewProps",
    "NewTicketInViewTrigger",
    "PollingTrigger",
    "ZendeskAuth",
    "get_trigger",
    "list_view_options",
    "view_dropdown",
]
