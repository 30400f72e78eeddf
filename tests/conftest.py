"""
Pytest configuration and shared fixtures for headless_middleware tests.
"""

import asyncio
from typing import Any

import pytest

from headless_middleware.config import ClientConfig, HeadlessConfig

DOCUMENTS = {
    "doc-home": {"id": "doc-home", "uid": "home", "type": "page", "data": {}},
    "doc-about": {"id": "doc-about", "uid": "about", "type": "page", "data": {}},
}


class FakeContentClient:
    """In-memory ContentClient recording how it was built."""

    def __init__(
        self,
        config: ClientConfig,
        preview_token: str | None = None,
        documents: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.config = config
        self.preview_token = preview_token
        self.documents = dict(DOCUMENTS if documents is None else documents)
        self.closed = False

    async def query(self, predicates: list[str] | None = None, **params: Any) -> dict[str, Any]:
        return {"results": list(self.documents.values())}

    async def get_by_id(self, document_id: str) -> dict[str, Any] | None:
        return self.documents.get(document_id)

    async def get_by_uid(self, document_type: str, uid: str) -> dict[str, Any] | None:
        for doc in self.documents.values():
            if doc.get("type") == document_type and doc.get("uid") == uid:
                return doc
        return None

    async def get_single(self, document_type: str) -> dict[str, Any] | None:
        for doc in self.documents.values():
            if doc.get("type") == document_type:
                return doc
        return None

    async def aclose(self) -> None:
        self.closed = True


class CountingFactory:
    """ClientFactory that records every construction."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.clients: list[FakeContentClient] = []
        self.delay = delay
        self.fail_times = fail_times

    async def __call__(self, config: ClientConfig, preview_token: str | None) -> FakeContentClient:
        self.calls.append((config.repository, preview_token))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise ConnectionError("content API unreachable")
        client = FakeContentClient(config, preview_token)
        self.clients.append(client)
        return client


def link_resolver(document: dict[str, Any]) -> str:
    return f"/{document['uid']}"


@pytest.fixture
def factory() -> CountingFactory:
    """Provide a fresh counting client factory."""
    return CountingFactory()


@pytest.fixture
def make_factory():
    """Build counting factories with custom delay/failure settings."""
    return CountingFactory


@pytest.fixture
def client_config() -> ClientConfig:
    """Repository identity with an access token (preview enabled)."""
    return ClientConfig(repository="demo", access_token="api-token")


@pytest.fixture
def public_client_config() -> ClientConfig:
    """Repository identity without an access token (preview disabled)."""
    return ClientConfig(repository="demo")


@pytest.fixture
def headless_config() -> HeadlessConfig:
    """Full configuration with preview and webhook secret enabled."""
    return HeadlessConfig(
        repo="demo",
        access_token="api-token",
        webhook_secret="abc",
        link_resolver=link_resolver,
    )
