"""Unit tests for the in-memory client cache.

Covers handle identity per (config, preview token), single construction under
concurrent first access, failure handling and shutdown.
"""

import asyncio

import pytest

from headless_middleware.cache.base import ClientRegistry
from headless_middleware.cache.memory import ClientCache
from headless_middleware.client.httpx_client import HttpxContentClient
from headless_middleware.config import ClientConfig
from headless_middleware.models import ClientHandle, ClientKey


class TestClientCacheIdentity:
    """Handles are memoized per key."""

    @pytest.mark.asyncio
    async def test_same_key_returns_same_handle(self, factory, client_config) -> None:
        cache = ClientCache(factory=factory)

        first = await cache.get_or_create(client_config)
        second = await cache.get_or_create(client_config)

        assert first is second
        assert len(factory.calls) == 1

    @pytest.mark.asyncio
    async def test_distinct_preview_tokens_get_distinct_handles(self, factory, client_config) -> None:
        cache = ClientCache(factory=factory)

        one = await cache.get_or_create(client_config, "token-1")
        two = await cache.get_or_create(client_config, "token-2")

        assert one is not two
        assert one.preview_token == "token-1"
        assert two.preview_token == "token-2"
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_preview_and_normal_handles_differ(self, factory, client_config) -> None:
        cache = ClientCache(factory=factory)

        normal = await cache.get_or_create(client_config)
        preview = await cache.get_or_create(client_config, "token-1")

        assert normal is not preview
        assert not normal.is_preview
        assert preview.is_preview

    @pytest.mark.asyncio
    async def test_equal_configs_share_a_handle(self, factory) -> None:
        cache = ClientCache(factory=factory)

        a = await cache.get_or_create(ClientConfig(repository="demo", access_token="t"))
        b = await cache.get_or_create(ClientConfig(repository="demo", access_token="t"))

        assert a is b

    @pytest.mark.asyncio
    async def test_token_presence_is_part_of_identity(self, factory) -> None:
        cache = ClientCache(factory=factory)

        public = await cache.get_or_create(ClientConfig(repository="demo"))
        private = await cache.get_or_create(ClientConfig(repository="demo", access_token="t"))

        assert public is not private

    @pytest.mark.asyncio
    async def test_different_repositories_differ(self, factory) -> None:
        cache = ClientCache(factory=factory)

        a = await cache.get_or_create(ClientConfig(repository="one"))
        b = await cache.get_or_create(ClientConfig(repository="two"))

        assert a is not b

    @pytest.mark.asyncio
    async def test_handle_carries_factory_client(self, factory, client_config) -> None:
        cache = ClientCache(factory=factory)

        handle = await cache.get_or_create(client_config, "tok")

        assert isinstance(handle, ClientHandle)
        assert handle.client is factory.clients[0]
        assert handle.client.preview_token == "tok"
        assert handle.config == client_config

    @pytest.mark.asyncio
    async def test_sync_factory_supported(self, client_config) -> None:
        built = []

        def sync_factory(config, preview_token):
            built.append(preview_token)
            return object()

        cache = ClientCache(factory=sync_factory)
        handle = await cache.get_or_create(client_config)

        assert handle is await cache.get_or_create(client_config)
        assert built == [None]


class TestClientCacheConcurrency:
    """Concurrent first access builds exactly one handle."""

    @pytest.mark.asyncio
    async def test_concurrent_first_access_builds_once(self, make_factory, client_config) -> None:
        factory = make_factory(delay=0.05)
        cache = ClientCache(factory=factory)

        handles = await asyncio.gather(*(cache.get_or_create(client_config) for _ in range(10)))

        assert len(factory.calls) == 1
        assert all(h is handles[0] for h in handles)

    @pytest.mark.asyncio
    async def test_concurrent_access_different_keys_not_serialized(
        self, make_factory, client_config
    ) -> None:
        factory = make_factory(delay=0.1)
        cache = ClientCache(factory=factory)

        loop = asyncio.get_running_loop()
        start = loop.time()
        await asyncio.gather(
            cache.get_or_create(client_config, "a"),
            cache.get_or_create(client_config, "b"),
            cache.get_or_create(client_config, "c"),
        )
        elapsed = loop.time() - start

        assert len(factory.calls) == 3
        assert elapsed < 0.25

    @pytest.mark.asyncio
    async def test_construction_failure_is_not_cached(self, make_factory, client_config) -> None:
        factory = make_factory(fail_times=1)
        cache = ClientCache(factory=factory)

        with pytest.raises(ConnectionError):
            await cache.get_or_create(client_config)
        assert len(cache) == 0

        handle = await cache.get_or_create(client_config)
        assert handle is await cache.get_or_create(client_config)
        assert len(factory.calls) == 2

    @pytest.mark.asyncio
    async def test_waiter_retries_after_failed_construction(self, make_factory, client_config) -> None:
        factory = make_factory(delay=0.05, fail_times=1)
        cache = ClientCache(factory=factory)

        results = await asyncio.gather(
            cache.get_or_create(client_config),
            cache.get_or_create(client_config),
            return_exceptions=True,
        )

        assert isinstance(results[0], ConnectionError)
        assert isinstance(results[1], ClientHandle)
        assert len(factory.calls) == 2


class TestClientCacheIntrospection:
    @pytest.mark.asyncio
    async def test_peek_and_contains(self, factory, client_config) -> None:
        cache = ClientCache(factory=factory)
        assert cache.peek(client_config) is None

        handle = await cache.get_or_create(client_config)

        assert cache.peek(client_config) is handle
        assert cache.peek(client_config, "other") is None
        assert ClientKey.for_config(client_config) in cache

    def test_default_factory_is_httpx_client(self) -> None:
        cache = ClientCache()
        assert cache._factory == HttpxContentClient.create

    def test_implements_registry_protocol(self) -> None:
        assert isinstance(ClientCache(), ClientRegistry)


class TestClientCacheClose:
    @pytest.mark.asyncio
    async def test_aclose_closes_clients_and_empties(self, factory, client_config) -> None:
        cache = ClientCache(factory=factory)
        await cache.get_or_create(client_config)
        await cache.get_or_create(client_config, "tok")

        await cache.aclose()

        assert len(cache) == 0
        assert all(client.closed for client in factory.clients)

    @pytest.mark.asyncio
    async def test_aclose_continues_after_close_failure(self, client_config) -> None:
        closed = []

        class Broken:
            async def aclose(self):
                raise RuntimeError("boom")

        class Fine:
            async def aclose(self):
                closed.append(True)

        clients = iter([Broken(), Fine()])
        cache = ClientCache(factory=lambda config, token: next(clients))
        await cache.get_or_create(client_config)
        await cache.get_or_create(client_config, "tok")

        await cache.aclose()

        assert closed == [True]
