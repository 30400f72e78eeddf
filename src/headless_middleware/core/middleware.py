"""Framework-agnostic core middleware for preview and webhook routes.

The middleware serves two routes under its mount path and ignores every
other request:

- ``GET <mount>/preview``: starts a preview session. It resolves the
  previewed document through a preview client, sets the preview cookie and
  redirects (302) to the document's path.
- ``POST <mount>/webhook``: runs the webhook gateway and answers 200, 400,
  401 or 500 depending on the outcome.

Examples:
    Using the middleware directly::

        middleware = HeadlessMiddleware(config, cache)

        if middleware.matches(request.method, request.path):
            response = await middleware.process(request)
"""

import json
from typing import Any
from urllib.parse import parse_qs

from headless_middleware.cache.base import ClientRegistry
from headless_middleware.config import HeadlessConfig
from headless_middleware.core.webhook import WebhookGateway
from headless_middleware.observability.logging import get_logger
from headless_middleware.observability.metrics import record_preview_redirect
from headless_middleware.utils.cookies import encode_preview_cookie, format_set_cookie

logger = get_logger(__name__)


class Request:
    """Abstract request representation.

    Framework adapters convert their own request objects into this format.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: URL path
        query_string: Query string without leading '?'
        headers: Request headers as dict
        body: Request body as bytes
    """

    def __init__(
        self,
        method: str,
        path: str,
        query_string: str = "",
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.method = method
        self.path = path
        self.query_string = query_string
        self.headers = headers if headers is not None else {}
        self.body = body

    def query_param(self, name: str) -> str | None:
        """Return the first value of a query parameter, or None."""
        values = parse_qs(self.query_string).get(name)
        return values[0] if values else None


class Response:
    """Abstract response representation.

    Attributes:
        status: HTTP status code
        headers: Response headers
        body: Response body bytes
    """

    def __init__(
        self,
        status: int,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.status = status
        self.headers = headers if headers is not None else {}
        self.body = body

    @classmethod
    def json(cls, status: int, payload: dict[str, Any]) -> "Response":
        return cls(
            status=status,
            headers={"content-type": "application/json"},
            body=json.dumps(payload).encode(),
        )


class HeadlessMiddleware:
    """Serves the preview and webhook routes.

    Attributes:
        config: Middleware configuration
        cache: Registry of client handles
        gateway: Webhook gateway
    """

    def __init__(
        self,
        config: HeadlessConfig,
        cache: ClientRegistry,
        gateway: WebhookGateway | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.gateway = gateway if gateway is not None else WebhookGateway(
            webhook_secret=config.webhook_secret,
            webhook_callback=config.webhook_callback,
        )
        self._client_config = config.client_config()

    def matches(self, method: str, path: str) -> bool:
        """Whether this middleware serves the request."""
        method = method.upper()
        path = path.rstrip("/") or "/"
        return (method == "GET" and path == self.config.preview_path) or (
            method == "POST" and path == self.config.webhook_path
        )

    async def process(self, request: Request) -> Response | None:
        """Serve a request, or return None if it is not ours.

        Raises:
            UpstreamError: If resolving the previewed document failed.
        """
        if not self.matches(request.method, request.path):
            return None
        if request.method.upper() == "GET":
            return await self.handle_preview(request)
        return await self.handle_webhook(request)

    async def handle_preview(self, request: Request) -> Response:
        """Start a preview session and redirect to the previewed document.

        Query parameters:
            token: Preview ref issued by the content API. Required.
            documentId: Id of the previewed document. Optional.
        """
        if not self.config.preview_enabled:
            logger.warning("preview.unavailable", reason="no access token configured")
            return Response.json(404, {"error": "Preview is not enabled"})

        token = request.query_param("token")
        if not token:
            return Response.json(400, {"error": "Missing preview token"})

        handle = await self.cache.get_or_create(self._client_config, token)
        location = self.config.default_preview_url
        document_id = request.query_param("documentId")
        if document_id:
            document = await handle.client.get_by_id(document_id)
            if document is not None:
                location = self.config.link_resolver(document) or location

        cookie = format_set_cookie(
            self.config.preview_cookie_name,
            encode_preview_cookie(self.config.repository, token),
            max_age=self.config.preview_cookie_max_age,
        )
        record_preview_redirect()
        logger.info("preview.started", document_id=document_id, location=location)
        return Response(
            status=302,
            headers={"location": location, "set-cookie": cookie},
        )

    async def handle_webhook(self, request: Request) -> Response:
        """Run the webhook gateway on the request's JSON body."""
        payload = self._parse_body(request.body)
        secret = payload.get("secret")
        if secret is not None and not isinstance(secret, str):
            secret = str(secret)

        result = await self.gateway.handle(secret)
        body: dict[str, Any] = {"outcome": result.outcome.value}
        if result.error is not None:
            body["error"] = result.error.message
        return Response.json(result.status_code, body)

    def _parse_body(self, body: bytes) -> dict[str, Any]:
        if not body:
            return {}
        try:
            payload = json.loads(body)
        except ValueError:
            logger.warning("webhook.invalid_body")
            return {}
        return payload if isinstance(payload, dict) else {}
