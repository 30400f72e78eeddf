"""Unit tests for the runtime container."""

import pytest

from headless_middleware.cache.memory import ClientCache
from headless_middleware.config import HeadlessConfig
from headless_middleware.core.query import QueryContext
from headless_middleware.exceptions import ConfigurationError
from headless_middleware.runtime import HeadlessRuntime

FORGED = {"io.prismic.preview": "forged-token"}


class TestHeadlessRuntime:
    def test_services_share_one_cache(self, headless_config, factory) -> None:
        runtime = HeadlessRuntime(headless_config, factory=factory)

        assert runtime.query.cache is runtime.cache
        assert runtime.middleware.cache is runtime.cache
        assert runtime.query.preview is runtime.preview

    def test_preview_session_follows_config(self, headless_config, factory) -> None:
        runtime = HeadlessRuntime(headless_config, factory=factory)
        assert runtime.preview.cookie_name == headless_config.preview_cookie_name
        assert runtime.preview.repository == "demo"

    def test_external_cache(self, headless_config, factory) -> None:
        cache = ClientCache(factory=factory)
        assert HeadlessRuntime(headless_config, cache=cache).cache is cache

    @pytest.mark.asyncio
    async def test_runtimes_sharing_a_cache_share_handles(self, headless_config, factory) -> None:
        shared = ClientCache(factory=factory)
        first = HeadlessRuntime(headless_config, cache=shared)
        second = HeadlessRuntime(headless_config, cache=shared)

        def capture(handle, props):
            return handle

        handle = await first.query.bind(capture)(QueryContext())

        assert await second.query.bind(capture)(QueryContext()) is handle
        assert factory.calls == [("demo", None)]

    def test_mapping_config(self, factory) -> None:
        runtime = HeadlessRuntime({"repo": "demo", "link_resolver": str}, factory=factory)
        assert isinstance(runtime.config, HeadlessConfig)
        assert runtime.config.repository == "demo"

    def test_invalid_mapping_config(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            HeadlessRuntime({"link_resolver": str})
        assert "repo" in exc_info.value.message

    def test_preview_disabled_without_access_token(self, factory) -> None:
        runtime = HeadlessRuntime({"repo": "demo", "link_resolver": str}, factory=factory)

        assert runtime.preview.enabled is False
        assert runtime.preview.detect(FORGED) is None

    def test_preview_enabled_with_access_token(self, headless_config, factory) -> None:
        runtime = HeadlessRuntime(headless_config, factory=factory)
        assert runtime.preview.detect(FORGED) == "forged-token"

    @pytest.mark.asyncio
    async def test_lifespan_closes_clients(self, headless_config, factory) -> None:
        runtime = HeadlessRuntime(headless_config, factory=factory)

        async with runtime.lifespan():
            await runtime.query.bind(lambda handle, props: None)(QueryContext())
            assert len(runtime.cache) == 1

        assert len(runtime.cache) == 0
        assert factory.clients[0].closed

    @pytest.mark.asyncio
    async def test_lifespan_closes_on_error(self, headless_config, factory) -> None:
        runtime = HeadlessRuntime(headless_config, factory=factory)

        with pytest.raises(RuntimeError):
            async with runtime.lifespan(app=object()):
                await runtime.cache.get_or_create(headless_config.client_config())
                raise RuntimeError("startup failed")

        assert factory.clients[0].closed
