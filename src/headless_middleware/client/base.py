"""Content client protocol for the headless content middleware.

This module defines the interface the middleware expects from a content API
client. The middleware never issues HTTP calls on its own: it builds clients
through a ClientFactory, caches them, and hands them to caller-supplied query
functions.

Examples:
    Implementing a custom client::

        from headless_middleware.client.base import ContentClient

        class FixtureClient:
            def __init__(self, documents: dict[str, dict]) -> None:
                self.documents = documents

            async def query(self, predicates=None, **params):
                return {"results": list(self.documents.values())}

            async def get_by_id(self, document_id):
                return self.documents.get(document_id)

            ...

    Plugging it into the cache::

        async def factory(config, preview_token):
            return FixtureClient(load_fixtures(config.repository))

        cache = ClientCache(factory=factory)

Error Handling:
    Clients should raise UpstreamError for network failures, non-success
    responses and malformed payloads. A "not found" lookup returns None
    rather than raising. The middleware adds no retries of its own.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from headless_middleware.config import ClientConfig


@runtime_checkable
class ContentClient(Protocol):
    """Protocol for content API clients.

    A client is bound to one repository and, in preview mode, to one preview
    token. It is constructed once per (config, preview token) pair by the
    client cache and shared by every query that resolves to that pair, so
    implementations must be safe to use from concurrent asyncio tasks.
    """

    async def query(self, predicates: list[str] | None = None, **params: Any) -> dict[str, Any]:
        """Search documents.

        Args:
            predicates: Query predicates, e.g. ``'at(document.type, "page")'``.
            **params: Extra search parameters (pageSize, orderings, lang...).

        Returns:
            The search response, with documents under ``results``.
        """
        ...

    async def get_by_id(self, document_id: str) -> dict[str, Any] | None:
        """Fetch one document by id, or None when it does not exist."""
        ...

    async def get_by_uid(self, document_type: str, uid: str) -> dict[str, Any] | None:
        """Fetch one document by type and uid, or None when it does not exist."""
        ...

    async def get_single(self, document_type: str) -> dict[str, Any] | None:
        """Fetch the single document of a singleton type, or None."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        ...


# Builds a client for a repository, optionally bound to a preview token.
# May return the client directly or an awaitable resolving to it.
ClientFactory = Callable[[ClientConfig, str | None], ContentClient | Awaitable[ContentClient]]
