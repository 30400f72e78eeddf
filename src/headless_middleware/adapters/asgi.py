"""ASGI middleware adapter for FastAPI and Starlette applications.

This module wraps the core HeadlessMiddleware so it can be added to any
Starlette-based application. Requests to ``<mount>/preview`` and
``<mount>/webhook`` are answered by the middleware; everything else passes
through to the application.

Examples:
    FastAPI integration::

        from fastapi import FastAPI
        from headless_middleware.adapters.asgi import ASGIHeadlessMiddleware
        from headless_middleware.config import HeadlessConfig
        from headless_middleware.runtime import HeadlessRuntime

        runtime = HeadlessRuntime(
            HeadlessConfig(
                repo="demo",
                access_token=os.environ["DEMO_TOKEN"],
                webhook_secret=os.environ["DEMO_WEBHOOK_SECRET"],
                webhook_callback=page_cache.clear,
                link_resolver=lambda doc: f"/{doc['uid']}",
            )
        )

        app = FastAPI(lifespan=runtime.lifespan)
        app.add_middleware(ASGIHeadlessMiddleware, runtime=runtime)

    Starlette integration::

        from starlette.applications import Starlette
        from starlette.middleware import Middleware

        app = Starlette(
            middleware=[Middleware(ASGIHeadlessMiddleware, runtime=runtime)],
            lifespan=runtime.lifespan,
        )
"""

from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response

from headless_middleware.config import HeadlessConfig
from headless_middleware.core.middleware import Request
from headless_middleware.core.middleware import Response as MiddlewareResponse
from headless_middleware.runtime import HeadlessRuntime


class ASGIHeadlessMiddleware(BaseHTTPMiddleware):
    """ASGI middleware serving the preview and webhook routes.

    Attributes:
        runtime: Runtime owning the client cache and the core middleware.
    """

    def __init__(
        self,
        app: Any,
        runtime: HeadlessRuntime | None = None,
        config: HeadlessConfig | None = None,
    ) -> None:
        """Initialize the ASGI middleware.

        Args:
            app: The ASGI application
            runtime: Shared runtime. Preferred, so queries and routes use the
                same client cache.
            config: Used to build a private runtime when none is given.

        Raises:
            ValueError: If neither runtime nor config is provided.
        """
        super().__init__(app)
        if runtime is None:
            if config is None:
                raise ValueError("ASGIHeadlessMiddleware requires a runtime or a config")
            runtime = HeadlessRuntime(config)
        self.runtime = runtime

    async def dispatch(
        self,
        request: StarletteRequest,
        call_next: Callable[[StarletteRequest], Awaitable[Response]],
    ) -> Response:
        middleware = self.runtime.middleware
        if not middleware.matches(request.method, request.url.path):
            return await call_next(request)

        internal_request = await self._convert_request(request)
        result = await middleware.process(internal_request)
        if result is None:
            return await call_next(request)
        return self._convert_response(result)

    async def _convert_request(self, request: StarletteRequest) -> Request:
        body = b""
        if request.method.upper() == "POST":
            body = await request.body()

        return Request(
            method=request.method,
            path=request.url.path,
            query_string=request.url.query or "",
            headers=dict(request.headers.items()),
            body=body,
        )

    def _convert_response(self, response: MiddlewareResponse) -> Response:
        return Response(
            content=response.body,
            status_code=response.status,
            headers=response.headers,
        )
