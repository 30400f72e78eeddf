"""In-memory client cache with asyncio concurrency control.

This module provides the process-wide registry of client handles. It uses
asyncio.Lock for concurrency control so that concurrent first lookups for a
key build a single client.

Entries are never evicted. The number of distinct keys is bounded by the
deployment: one normal-mode handle per repository plus one handle per
preview session in use. The registry is torn down with ``aclose()`` when the
owning runtime shuts down.

Concurrency:
    - Each key has its own asyncio.Lock, created under a registry lock
    - Lookups of built handles take no lock
    - A caller that waited on a key lock re-checks the registry before
      building, so it reuses the winner's handle

Examples:
    Basic usage::

        from headless_middleware.cache.memory import ClientCache
        from headless_middleware.client.httpx_client import HttpxContentClient

        cache = ClientCache(factory=HttpxContentClient.create)

        normal = await cache.get_or_create(config)
        assert normal is await cache.get_or_create(config)

        preview = await cache.get_or_create(config, preview_token="tok")
        assert preview is not normal

    Concurrent first access::

        handles = await asyncio.gather(
            cache.get_or_create(config),
            cache.get_or_create(config),
        )

        # Built once, shared by both callers
        assert handles[0] is handles[1]
"""

import asyncio
import inspect

from headless_middleware.cache.base import ClientRegistry
from headless_middleware.client.base import ClientFactory
from headless_middleware.client.httpx_client import HttpxContentClient
from headless_middleware.config import ClientConfig
from headless_middleware.models import ClientHandle, ClientKey
from headless_middleware.observability.logging import get_logger
from headless_middleware.observability.metrics import (
    record_cache_lookup,
    record_client_construction,
)

logger = get_logger(__name__)


class ClientCache(ClientRegistry):
    """In-memory registry of client handles.

    Attributes:
        _factory: Builds a content client for (config, preview_token).
        _handles: Dictionary mapping keys to built handles.
        _locks: Dictionary mapping keys to asyncio.Lock objects.
        _global_lock: Lock protecting the _locks dictionary.
    """

    def __init__(self, factory: ClientFactory | None = None) -> None:
        """Initialize an empty cache.

        Args:
            factory: Client factory. Defaults to HttpxContentClient.create.
        """
        if factory is None:
            factory = HttpxContentClient.create
        self._factory: ClientFactory = factory
        self._handles: dict[ClientKey, ClientHandle] = {}
        self._locks: dict[ClientKey, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, key: object) -> bool:
        return key in self._handles

    def peek(self, config: ClientConfig, preview_token: str | None = None) -> ClientHandle | None:
        return self._handles.get(ClientKey.for_config(config, preview_token))

    async def get_or_create(
        self,
        config: ClientConfig,
        preview_token: str | None = None,
    ) -> ClientHandle:
        """Return the handle for (config, preview_token), building it once.

        Race Condition Handling:
            If several coroutines miss on the same key at once, the first to
            acquire the key lock builds the handle. The others block on the
            lock, then find the stored handle on their re-check. If the build
            failed, the next waiter in line runs the factory itself.

        Args:
            config: Repository identity.
            preview_token: Preview token, or None for normal mode.

        Returns:
            The shared handle for that key.

        Raises:
            Exception: Whatever the client factory raised. Nothing is stored
                in that case.
        """
        key = ClientKey.for_config(config, preview_token)

        # Fast path, no lock needed
        handle = self._handles.get(key)
        if handle is not None:
            record_cache_lookup(hit=True)
            return handle

        async with self._global_lock:
            lock = self._locks.setdefault(key, asyncio.Lock())

        async with lock:
            # Double-check: another coroutine may have built it while we waited
            handle = self._handles.get(key)
            if handle is not None:
                record_cache_lookup(hit=True)
                return handle

            record_cache_lookup(hit=False)
            client = self._factory(config, preview_token)
            if inspect.isawaitable(client):
                client = await client

            handle = ClientHandle(config=config, client=client, preview_token=preview_token)
            self._handles[key] = handle
            record_client_construction()
            logger.info(
                "client_cache.constructed",
                repository=config.repository,
                preview=handle.is_preview,
                size=len(self._handles),
            )
            return handle

    async def aclose(self) -> None:
        """Close every client and empty the registry.

        Close failures are logged and do not stop the remaining clients from
        being closed.
        """
        async with self._global_lock:
            handles = list(self._handles.values())
            self._handles.clear()
            self._locks.clear()

        for handle in handles:
            close = getattr(handle.client, "aclose", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning(
                    "client_cache.close_failed",
                    repository=handle.config.repository,
                    error=str(e),
                )
        logger.info("client_cache.closed", closed=len(handles))
