"""Default content API client built on httpx.

Talks to a Prismic-style REST API v2:

- ``GET <endpoint>`` returns the repository description, including its refs.
  The ref flagged ``isMasterRef`` points at published content.
- ``GET <endpoint>/documents/search`` searches documents at a given ref.

In preview mode the preview token is used as the ref, so every query sees the
draft content of the preview session.

Examples:
    Build a client through the cache::

        from headless_middleware.cache import ClientCache
        from headless_middleware.client.httpx_client import HttpxContentClient

        cache = ClientCache(factory=HttpxContentClient.create)
        handle = await cache.get_or_create(config.client_config())
        page = await handle.client.get_by_uid("page", "home")
"""

import json
from typing import Any

import httpx

from headless_middleware.config import ClientConfig
from headless_middleware.exceptions import UpstreamError
from headless_middleware.observability.logging import get_logger

logger = get_logger(__name__)


def at(path: str, value: Any) -> str:
    """Build an ``at`` predicate.

    Example:
        >>> at("document.type", "page")
        'at(document.type, "page")'
    """
    return f"at({path}, {json.dumps(value)})"


def build_query(predicates: list[str]) -> str:
    """Join predicates into the ``q`` search parameter.

    Example:
        >>> build_query(['at(document.type, "page")'])
        '[[at(document.type, "page")]]'
    """
    return "[" + "".join(f"[{p}]" for p in predicates) + "]"


class HttpxContentClient:
    """Content API client using an httpx.AsyncClient.

    Attributes:
        endpoint: REST API v2 endpoint.
        access_token: Optional API credential.
        preview_token: Preview ref, when bound to a preview session.
    """

    def __init__(
        self,
        endpoint: str,
        access_token: str | None = None,
        preview_token: str | None = None,
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.access_token = access_token
        self.preview_token = preview_token
        self._http = http if http is not None else httpx.AsyncClient(timeout=timeout)
        self._master_ref: str | None = None

    @classmethod
    def create(cls, config: ClientConfig, preview_token: str | None = None) -> "HttpxContentClient":
        """ClientFactory entry point used by the client cache."""
        return cls(
            endpoint=config.api_endpoint,
            access_token=config.access_token,
            preview_token=preview_token,
        )

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        if self.access_token:
            params = {**params, "access_token": self.access_token}
        try:
            response = await self._http.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"Content API returned {e.response.status_code} for {url}",
                cause=e,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Content API request failed: {e}", cause=e) from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Content API returned invalid JSON for {url}", cause=e) from e
        if not isinstance(data, dict):
            raise UpstreamError(f"Content API returned unexpected payload for {url}")
        return data

    async def get_master_ref(self) -> str:
        """Fetch (once) the ref of published content."""
        if self._master_ref is None:
            api = await self._get_json(self.endpoint, {})
            for ref in api.get("refs", []):
                if ref.get("isMasterRef"):
                    self._master_ref = ref["ref"]
                    break
            else:
                raise UpstreamError(f"No master ref advertised by {self.endpoint}")
            logger.debug("content_client.master_ref", endpoint=self.endpoint)
        return self._master_ref

    async def resolve_ref(self) -> str:
        """Ref used for queries: the preview token, or the master ref."""
        if self.preview_token:
            return self.preview_token
        return await self.get_master_ref()

    async def query(self, predicates: list[str] | None = None, **params: Any) -> dict[str, Any]:
        search: dict[str, Any] = {"ref": await self.resolve_ref(), **params}
        if predicates:
            search["q"] = build_query(predicates)
        return await self._get_json(f"{self.endpoint}/documents/search", search)

    async def _first(self, predicates: list[str]) -> dict[str, Any] | None:
        results = (await self.query(predicates, pageSize=1)).get("results") or []
        return results[0] if results else None

    async def get_by_id(self, document_id: str) -> dict[str, Any] | None:
        return await self._first([at("document.id", document_id)])

    async def get_by_uid(self, document_type: str, uid: str) -> dict[str, Any] | None:
        return await self._first([at(f"my.{document_type}.uid", uid)])

    async def get_single(self, document_type: str) -> dict[str, Any] | None:
        return await self._first([at("document.type", document_type)])

    async def aclose(self) -> None:
        await self._http.aclose()
