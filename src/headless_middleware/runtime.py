"""Process-lifetime container for the middleware's shared services.

The client cache is the only state shared across requests. Instead of
holding it in a module-level global, a HeadlessRuntime owns it together with
the services built on top of it, and is scoped to application startup and
shutdown.

Examples:
    FastAPI integration::

        runtime = HeadlessRuntime(HeadlessConfig.from_env(link_resolver=resolve))

        app = FastAPI(lifespan=runtime.lifespan)
        app.add_middleware(ASGIHeadlessMiddleware, runtime=runtime)

        get_page = runtime.query.bind(fetch_page)
"""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from headless_middleware.cache.base import ClientRegistry
from headless_middleware.cache.memory import ClientCache
from headless_middleware.client.base import ClientFactory
from headless_middleware.config import HeadlessConfig
from headless_middleware.core.middleware import HeadlessMiddleware
from headless_middleware.core.preview import PreviewSession
from headless_middleware.core.query import QueryService
from headless_middleware.observability.logging import get_logger

logger = get_logger(__name__)


class HeadlessRuntime:
    """Owns the client cache and the services sharing it.

    The config may be given as a HeadlessConfig or as a plain mapping, which
    is validated through ``HeadlessConfig.from_dict``.

    Attributes:
        config: Middleware configuration.
        cache: Registry of client handles.
        preview: Preview session detector.
        query: Query service bound to the configured repository.
        middleware: Preview/webhook route handler.
    """

    def __init__(
        self,
        config: HeadlessConfig | Mapping[str, Any],
        factory: ClientFactory | None = None,
        cache: ClientRegistry | None = None,
    ) -> None:
        """Build the shared services.

        Args:
            config: Middleware configuration, or a mapping of its settings.
            factory: Client factory for a cache built here.
            cache: Existing registry to share. Takes precedence over factory.

        Raises:
            ConfigurationError: If a mapping config is missing settings or
                holds invalid values.
        """
        if not isinstance(config, HeadlessConfig):
            config = HeadlessConfig.from_dict(dict(config))
        self.config = config
        self.cache = cache if cache is not None else ClientCache(factory=factory)
        self.preview = PreviewSession(
            cookie_name=config.preview_cookie_name,
            repository=config.repository,
            enabled=config.preview_enabled,
        )
        self.query = QueryService(config.client_config(), self.cache, self.preview)
        self.middleware = HeadlessMiddleware(config, self.cache)

    async def aclose(self) -> None:
        """Release every cached client."""
        await self.cache.aclose()

    @asynccontextmanager
    async def lifespan(self, app: Any = None) -> AsyncIterator[None]:
        """ASGI lifespan handler closing the cache on shutdown."""
        logger.info("runtime.started", repository=self.config.repository)
        try:
            yield
        finally:
            await self.aclose()
            logger.info("runtime.stopped", repository=self.config.repository)
