"""Shared application wiring for scenario tests."""

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from headless_middleware.adapters.asgi import ASGIHeadlessMiddleware
from headless_middleware.config import HeadlessConfig
from headless_middleware.core.query import QueryContext
from headless_middleware.runtime import HeadlessRuntime


def resolve_link(document: dict[str, Any]) -> str:
    return f"/{document['uid']}"


async def fetch_page(handle, props):
    """Query used by the test application's page route."""
    document = await handle.client.get_by_uid("page", props["uid"])
    return {"document": document, "preview_token": handle.preview_token}


def create_app(runtime: HeadlessRuntime) -> FastAPI:
    """Build a FastAPI app wired to the runtime like a real site."""
    app = FastAPI(lifespan=runtime.lifespan)
    app.add_middleware(ASGIHeadlessMiddleware, runtime=runtime)
    get_page = runtime.query.bind(fetch_page)

    @app.get("/pages/{uid}")
    async def page(uid: str, request: Request):
        result = await get_page(QueryContext.from_request(request, {"uid": uid}))
        if result["document"] is None:
            raise HTTPException(status_code=404, detail="Page not found")
        return {"id": result["document"]["id"], "preview_token": result["preview_token"]}

    @app.post("/api/orders")
    async def orders():
        return {"ok": True}

    return app


@pytest.fixture
def page_cache() -> dict[str, str]:
    """Stand-in for an external rendered-page cache."""
    return {"/home": "<html>home</html>", "/about": "<html>about</html>"}


@pytest.fixture
def make_runtime(factory, page_cache) -> Callable[..., HeadlessRuntime]:
    """Build runtimes over the shared counting factory."""

    def build(**overrides: Any) -> HeadlessRuntime:
        settings: dict[str, Any] = {
            "repo": "demo",
            "access_token": "api-token",
            "webhook_secret": "abc",
            "webhook_callback": page_cache.clear,
            "link_resolver": resolve_link,
            **overrides,
        }
        return HeadlessRuntime(HeadlessConfig(**settings), factory=factory)

    return build


@pytest.fixture
def make_app() -> Callable[[HeadlessRuntime], FastAPI]:
    return create_app


@pytest.fixture
def make_client() -> Iterator[Callable[[HeadlessRuntime], TestClient]]:
    """Start test clients, with lifespan, for apps wired to a runtime."""
    clients: list[TestClient] = []

    def build(runtime: HeadlessRuntime) -> TestClient:
        client = TestClient(create_app(runtime))
        client.__enter__()
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.__exit__(None, None, None)
