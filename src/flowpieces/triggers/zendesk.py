"""Zendesk triggers: new ticket in view."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowpieces.common.errors import ConfigError
from flowpieces.common.logging import get_logger
from flowpieces.integrations.zendesk import ZendeskClient
from flowpieces.polling import PollingItem
from flowpieces.triggers._base import (
    DropdownOption,
    DropdownState,
    PollingTrigger,
    digest_key,
    format_validation_error,
)

log = get_logger(__name__)

AUTH_DESCRIPTION = """
**Organization**: The organization name can be found in the URL (e.g https://ORGANIZATION_NAME.zendesk.com).

**Agent Email**: The email you use to log in to Zendesk.

**API Token**: You can find this in the Zendesk Admin Panel under Settings > APIs > Zendesk API.
"""

_SUBDOMAIN_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_AUTH_FIELDS = ("email", "token", "subdomain")


class ZendeskAuth(BaseModel):
    """Agent credentials for one Zendesk instance."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    email: str = Field(min_length=1)
    token: str = Field(min_length=1, repr=False)
    subdomain: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("must be an email address")
        return v

    @field_validator("subdomain")
    @classmethod
    def _normalise_subdomain(cls, v: str) -> str:
        # Accept "https://acme.zendesk.com/" as well as "acme"
        v = v.lower().removeprefix("https://").removeprefix("http://").rstrip("/")
        v = v.removesuffix(".zendesk.com")
        if not _SUBDOMAIN_RE.match(v):
            raise ValueError("must be the organization subdomain, e.g. 'acme'")
        return v

    def client(self) -> ZendeskClient:
        return ZendeskClient(email=self.email, token=self.token, subdomain=self.subdomain)


class NewTicketInViewProps(BaseModel):
    authentication: ZendeskAuth
    view_id: str

    @field_validator("view_id", mode="before")
    @classmethod
    def _check_view_id(cls, v: Any) -> str:
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError("must be a view id")
        v = str(v).strip()
        if not v.isdigit():
            raise ValueError("must be a numeric view id")
        return v


# -- View options --------------------------------------------------------------


async def list_view_options(auth: ZendeskAuth) -> list[DropdownOption]:
    """Resolve the views visible to these credentials as (label, value) pairs."""
    async with auth.client() as client:
        views = await client.list_views()
    return [DropdownOption(label=view["title"], value=view["id"]) for view in views]


async def view_dropdown(auth: Mapping[str, Any] | ZendeskAuth | None) -> DropdownState:
    """Dropdown state for the view selector.

    Incomplete credentials give a disabled dropdown rather than an error.
    """
    if not isinstance(auth, ZendeskAuth):
        if not auth or not all(auth.get(f) for f in _AUTH_FIELDS):
            return DropdownState(
                placeholder="Fill your subdomain and authentication first",
                disabled=True,
            )
        try:
            auth = ZendeskAuth.model_validate(auth)
        except ValidationError as exc:
            raise ConfigError(f"authentication: {format_validation_error(exc)}") from exc

    options = await list_view_options(auth)
    log.debug("zendesk_views_resolved", subdomain=auth.subdomain, count=len(options))
    return DropdownState(placeholder="Select a view", options=options)


# -- Trigger -------------------------------------------------------------------


async def get_view_tickets(auth: ZendeskAuth, view_id: str) -> list[dict[str, Any]]:
    async with auth.client() as client:
        return await client.get_view_tickets(view_id)


class NewTicketInViewTrigger(PollingTrigger[NewTicketInViewProps]):
    name = "new_ticket_in_view"
    display_name = "New ticket in view"
    description = "Triggers when a new ticket is created in a view"
    auth_description = AUTH_DESCRIPTION
    props_model = NewTicketInViewProps
    sample_data = {
        "url": "https://activepieceshelp.zendesk.com/api/v2/tickets/5.json",
        "id": 5,
        "external_id": None,
        "via": {"channel": "web", "source": {"from": {}, "to": {}, "rel": None}},
        "created_at": "2023-03-25T02:39:41Z",
        "updated_at": "2023-03-25T02:39:41Z",
        "type": None,
        "subject": "Subject",
        "raw_subject": "Raw Subject",
        "description": "Description",
        "priority": None,
        "status": "open",
        "requester_id": 8193592318236,
        "submitter_id": 8193592318236,
        "assignee_id": 8193592318236,
        "organization_id": 8193599387420,
        "group_id": 8193569448092,
        "collaborator_ids": [],
        "follower_ids": [],
        "tags": [],
        "custom_fields": [],
        "is_public": True,
        "ticket_form_id": 8193569410076,
        "brand_id": 8193583542300,
    }

    async def fetch_items(self, props: NewTicketInViewProps) -> list[PollingItem]:
        tickets = await get_view_tickets(props.authentication, props.view_id)
        return [PollingItem(id=ticket["id"], data=ticket) for ticket in tickets]

    def instance_key(self, props: NewTicketInViewProps) -> str:
        # Token excluded: rotating it keeps the same instance state
        auth = props.authentication
        return digest_key(self.name, auth.subdomain, auth.email.lower(), props.view_id)
