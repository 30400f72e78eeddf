"""Demo FastAPI application with the headless content middleware.

This application serves pages from a content repository, supports editor
previews and clears its page cache when the content webhook fires.
Run with: HEADLESS_REPO=your-repo HEADLESS_LOG_JSON=false python demo_app.py
"""

from datetime import UTC, datetime
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request

from headless_middleware.adapters.asgi import ASGIHeadlessMiddleware
from headless_middleware.config import HeadlessConfig
from headless_middleware.core.query import QueryContext
from headless_middleware.observability.logging import configure_from_config
from headless_middleware.runtime import HeadlessRuntime
from headless_middleware.slices import parse_slice_zone, render_slice_zone

# Rendered pages, cleared by the webhook
page_cache: dict[str, dict[str, Any]] = {}


def link_resolver(document: dict[str, Any]) -> str:
    """Map a document to its path on this site."""
    if document.get("type") == "homepage":
        return "/"
    return f"/{document.get('uid', '')}"


runtime = HeadlessRuntime(
    HeadlessConfig.from_env(
        link_resolver=link_resolver,
        webhook_callback=page_cache.clear,
    )
)
configure_from_config(runtime.config)

app = FastAPI(
    title="Headless Middleware Demo",
    description="Pages served from a headless content API with preview support",
    version="0.1.0",
    lifespan=runtime.lifespan,
)
app.add_middleware(ASGIHeadlessMiddleware, runtime=runtime)


async def fetch_page(handle, props):
    return await handle.client.get_by_uid("page", props["uid"])


get_page = runtime.query.bind(fetch_page)

components = {
    "hero": lambda s, **_: {"kind": "hero", "title": s.primary.get("title")},
    "text": lambda s, **_: {"kind": "text", "body": s.primary.get("text")},
}


@app.get("/")
async def root():
    """Root endpoint - returns API info."""
    return {
        "name": "Headless Middleware Demo",
        "version": "0.1.0",
        "endpoints": {
            "GET /pages/{uid}": "Render a page (preview-aware)",
            "GET /api/preview": "Start a preview session",
            "POST /api/webhook": "Invalidate the page cache",
        },
    }


@app.get("/pages/{uid}")
async def page(uid: str, request: Request):
    """Render a page, bypassing the page cache while previewing."""
    context = QueryContext.from_request(request, {"uid": uid})
    previewing = get_page.session_key(context) is not None

    if not previewing and uid in page_cache:
        return page_cache[uid]

    document = await get_page(context)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Page {uid!r} not found")

    rendered = {
        "uid": uid,
        "preview": previewing,
        "slices": render_slice_zone(
            parse_slice_zone(document.get("data", {}).get("body")),
            components,
        ),
        "rendered_at": datetime.now(UTC).isoformat(),
    }
    if not previewing:
        page_cache[uid] = rendered
    return rendered


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
