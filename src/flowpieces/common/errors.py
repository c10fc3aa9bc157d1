"""Exception taxonomy shared by triggers, integrations and the request writer."""

from __future__ import annotations


class FlowpiecesError(Exception):
    """Base class for all flowpieces errors."""


class ConfigError(FlowpiecesError):
    """A required instance parameter or setting is missing or invalid.

    Raised before any network call is attempted.
    """


class IntegrationError(FlowpiecesError):
    """HTTP integration failure with structured metadata."""

    def __init__(
        self,
        integration: str,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        self.integration = integration
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{integration}: {detail}")


class AuthError(IntegrationError):
    """Credentials were rejected by the target service. Not retried."""


class FetchError(IntegrationError):
    """Transient network or service failure while fetching items."""


class RequestWriterError(FlowpiecesError):
    """The LLM did not return a usable request description."""
