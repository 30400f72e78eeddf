"""Content API clients.

This package defines the ContentClient protocol the middleware relies on and
ships a default implementation on top of httpx.

Available Clients:
    - HttpxContentClient: REST API v2 client using httpx.AsyncClient
"""

from headless_middleware.client.base import ClientFactory, ContentClient
from headless_middleware.client.httpx_client import HttpxContentClient

__all__ = [
    "ClientFactory",
    "ContentClient",
    "HttpxContentClient",
]
