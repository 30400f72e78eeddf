"""Query execution against cached client handles.

The QueryService is configured once per application and binds query
functions into request-scoped callables::

    config -> QueryService.bind(query_fn) -> bound(context) -> result

Each invocation of a bound query runs these steps in order:

1. Resolve the preview token from the context (server request or client
   cookie string). A missing token is normal mode, not an error.
2. Obtain the handle for (config, token) from the client cache.
3. Run ``query_fn(handle, context.props)``.
4. Return the callback's result, or let its exception propagate unchanged.

When the configuration has no access token, preview is unavailable: the
preview session is never consulted and the normal-mode handle is used no
matter what cookies the caller sends.

Examples:
    Binding and running a query::

        service = QueryService(config.client_config(), cache)

        async def get_page(handle, props):
            return await handle.client.get_by_uid("page", props["uid"])

        get_page_query = service.bind(get_page)

        @app.get("/{uid}")
        async def page(request: Request, uid: str):
            return await get_page_query(QueryContext.from_request(request, {"uid": uid}))
"""

from collections.abc import Callable
from typing import Any

from headless_middleware.cache.base import ClientRegistry
from headless_middleware.config import ClientConfig
from headless_middleware.core.preview import PreviewSession
from headless_middleware.models import ClientHandle
from headless_middleware.observability.logging import get_logger
from headless_middleware.observability.metrics import record_query

logger = get_logger(__name__)

QueryFn = Callable[[ClientHandle, Any], Any]


class QueryContext:
    """Request-scoped input of a bound query.

    Attributes:
        props: Caller data handed to the query function (route params etc.)
        request: Incoming server request, if running server side.
        document_cookie: Client cookie string, if running client side.
    """

    def __init__(
        self,
        props: Any = None,
        request: Any = None,
        document_cookie: str | None = None,
    ) -> None:
        self.props = props
        self.request = request
        self.document_cookie = document_cookie

    @classmethod
    def from_request(cls, request: Any, props: Any = None) -> "QueryContext":
        """Build a server-side context."""
        return cls(props=props, request=request)

    @classmethod
    def from_document(cls, document_cookie: str, props: Any = None) -> "QueryContext":
        """Build a client-side context from a ``document.cookie`` string."""
        return cls(props=props, document_cookie=document_cookie)

    @property
    def cookie_source(self) -> Any:
        """Where the preview cookie should be read from."""
        return self.request if self.request is not None else self.document_cookie


class QueryService:
    """Runs query functions against the right cached client handle.

    Attributes:
        config: Repository identity.
        cache: Registry of client handles.
        preview: Preview session detector.
    """

    def __init__(
        self,
        config: ClientConfig,
        cache: ClientRegistry,
        preview: PreviewSession | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        if preview is None:
            preview = PreviewSession(
                repository=config.repository,
                enabled=config.preview_enabled,
            )
        self.preview = preview

    @property
    def preview_enabled(self) -> bool:
        return self.config.preview_enabled

    def resolve_preview_token(self, context: QueryContext) -> str | None:
        """Return the preview token a call with this context would use.

        Without an access token this is always None and the preview session
        is not consulted.
        """
        if not self.preview_enabled:
            return None
        return self.preview.detect(context.cookie_source)

    async def execute(self, query_fn: QueryFn, context: QueryContext) -> Any:
        """Run one query for one context.

        Raises:
            Exception: Whatever the client cache or the query function
                raised, unchanged.
        """
        token = self.resolve_preview_token(context)
        handle = await self.cache.get_or_create(self.config, token)
        record_query(preview=handle.is_preview)
        logger.debug(
            "query.execute",
            repository=self.config.repository,
            preview=handle.is_preview,
            query=getattr(query_fn, "__name__", repr(query_fn)),
        )
        return await handle.run(query_fn, context.props)

    def bind(self, query_fn: QueryFn) -> "BoundQuery":
        """Bind a query function, returning a per-request callable."""
        return BoundQuery(self, query_fn)


class BoundQuery:
    """A query function bound to a QueryService.

    Calling it with a QueryContext returns an awaitable of the query result.
    """

    def __init__(self, service: QueryService, query_fn: QueryFn) -> None:
        self.service = service
        self.query_fn = query_fn

    def session_key(self, context: QueryContext) -> str | None:
        """Preview token this context resolves to (None in normal mode)."""
        return self.service.resolve_preview_token(context)

    async def __call__(self, context: QueryContext) -> Any:
        return await self.service.execute(self.query_fn, context)

    def __repr__(self) -> str:
        name = getattr(self.query_fn, "__name__", repr(self.query_fn))
        return f"<BoundQuery {name}>"
