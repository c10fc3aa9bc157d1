"""Zendesk Support API client: views and view tickets."""

from __future__ import annotations

from typing import Any

import httpx

from flowpieces.common.settings import get_settings
from flowpieces.integrations._base import BaseAPIClient

MAX_PAGE_SIZE = 200


class ZendeskClient(BaseAPIClient):
    """Authenticates with an agent email plus API token (``<email>/token``)."""

    _integration_name = "Zendesk"

    def __init__(self, *, email: str, token: str, subdomain: str) -> None:
        self.email = email
        self.token = token
        self.subdomain = subdomain

    @property
    def base_url(self) -> str:
        return f"https://{self.subdomain}.zendesk.com/api/v2"

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(f"{self.email}/token", self.token),
            timeout=get_settings().http_timeout_seconds,
        )

    # -- Typed convenience methods -------------------------------------------

    async def list_views(self) -> list[dict[str, Any]]:
        data = await self.get("/views.json")
        return data.get("views", [])

    async def get_view_tickets(
        self, view_id: str | int, *, per_page: int = MAX_PAGE_SIZE
    ) -> list[dict[str, Any]]:
        """Tickets in a view, newest first by creation time."""
        data = await self.get(
            f"/views/{view_id}/tickets.json",
            params={
                "sort_order": "desc",
                "sort_by": "created_at",
                "per_page": min(per_page, MAX_PAGE_SIZE),
            },
        )
        return data.get("tickets", [])
