"""Integration clients for external APIs."""

from flowpieces.common.errors import AuthError, FetchError, IntegrationError
from flowpieces.integrations._base import BaseAPIClient
from flowpieces.integrations.zendesk import ZendeskClient

__all__ = [
    "AuthError",
    "BaseAPIClient",
    "FetchError",
    "IntegrationError",
    "ZendeskClient",
]
