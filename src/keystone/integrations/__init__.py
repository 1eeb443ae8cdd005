"""External service integrations."""

from keystone.integrations.directus import (
    ApiResponse,
    AuthenticationError,
    DirectusClient,
    DirectusError,
    DirectusRequestError,
)

__all__ = [
    "ApiResponse",
    "AuthenticationError",
    "DirectusClient",
    "DirectusError",
    "DirectusRequestError",
]
