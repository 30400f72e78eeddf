"""Client registry protocol for the headless content middleware.

This module defines the interface of the keyed registry that hands out client
handles. The registry is a memoized factory with insert-if-absent semantics:
the first lookup for a key builds the handle, every later lookup returns the
same instance.

Concurrency Requirements:
    All ClientRegistry implementations MUST guarantee:

    1. **Single construction**: concurrent first lookups for the same key
       build exactly one handle. Later callers wait for the in-flight
       construction and receive its result.

    2. **Reference stability**: once built, the handle for a key is returned
       unchanged for the registry's lifetime.

    3. **No poisoned entries**: if construction fails, the error reaches the
       caller that triggered it and no entry is stored, so the next lookup
       tries again.

Examples:
    Resolving a handle::

        handle = await registry.get_or_create(config, preview_token)
        result = await handle.run(query_fn, props)
"""

from typing import Protocol, runtime_checkable

from headless_middleware.config import ClientConfig
from headless_middleware.models import ClientHandle


@runtime_checkable
class ClientRegistry(Protocol):
    """Protocol for client handle registries."""

    async def get_or_create(
        self,
        config: ClientConfig,
        preview_token: str | None = None,
    ) -> ClientHandle:
        """Return the handle for (config, preview_token), building it once.

        Args:
            config: Repository identity.
            preview_token: Preview token, or None for normal mode.

        Returns:
            The shared handle for that key.
        """
        ...

    def peek(self, config: ClientConfig, preview_token: str | None = None) -> ClientHandle | None:
        """Return the handle for a key if it was already built, else None."""
        ...

    async def aclose(self) -> None:
        """Close every client and empty the registry."""
        ...
