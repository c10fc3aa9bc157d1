"""Base API client with shared error handling and lifecycle management."""

from __future__ import annotations

from typing import Any

import httpx

from flowpieces.common.errors import AuthError, FetchError
from flowpieces.common.logging import get_logger

log = get_logger(__name__)

_AUTH_STATUS_CODES = frozenset({401, 403})


class BaseAPIClient:
    """Async context manager wrapping httpx.AsyncClient with error handling.

    Subclasses set ``_integration_name`` and implement ``_build_client()``.
    """

    _integration_name: str = "unknown"

    def _build_client(self) -> httpx.AsyncClient:
        """Create a configured httpx.AsyncClient (auth, base_url, timeout)."""
        raise NotImplementedError

    # -- Lifecycle -----------------------------------------------------------

    async def __aenter__(self) -> BaseAPIClient:
        self._client = self._build_client()
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    # -- Request helpers -----------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send an HTTP request through the managed client.

        Raises ``AuthError`` when credentials are rejected (401/403) and
        ``FetchError`` on any other HTTP, network or decoding failure.
        """
        name = self._integration_name.lower()
        try:
            resp = await self._client.request(method, path, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log.warning(f"{name}_api_error", status_code=status, detail=exc.response.text[:500])
            error_cls = AuthError if status in _AUTH_STATUS_CODES else FetchError
            raise error_cls(
                integration=self._integration_name,
                detail=f"API error {status}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            log.warning(f"{name}_network_error", error=str(exc))
            raise FetchError(integration=self._integration_name, detail=str(exc)) from exc
        except ValueError as exc:
            log.warning(f"{name}_invalid_json", error=str(exc))
            raise FetchError(
                integration=self._integration_name,
                detail="response body is not valid JSON",
            ) from exc
        return data

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)
