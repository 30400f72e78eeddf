"""Core type definitions for the headless content middleware.

This module provides the data structures shared across the package:
client cache keys, client handles, and webhook outcomes.

Examples:
    Building a cache key::

        from headless_middleware.config import ClientConfig
        from headless_middleware.models import ClientKey

        config = ClientConfig(repository="demo", access_token="token")
        key = ClientKey.for_config(config, preview_token=None)

    Mapping a webhook outcome to HTTP::

        from headless_middleware.models import WebhookOutcome

        WebhookOutcome.SECRET_MISMATCH.status_code  # 401
"""

import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from headless_middleware.client.base import ContentClient
from headless_middleware.config import ClientConfig
from headless_middleware.exceptions import CallbackError


class ClientKey(BaseModel):
    """Identity of one cached client handle.

    Attributes:
        repository: Repository name.
        has_access_token: Whether the config carries an access token.
        preview_token: Preview token the handle is bound to, if any.
    """

    repository: str = Field(..., min_length=1)
    has_access_token: bool = False
    preview_token: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def for_config(cls, config: ClientConfig, preview_token: str | None = None) -> "ClientKey":
        """Build the key for a config and optional preview token."""
        repository, has_access_token = config.cache_key
        return cls(
            repository=repository,
            has_access_token=has_access_token,
            preview_token=preview_token,
        )


class ClientHandle:
    """Capability object bound to one repository and optional preview token.

    Handles are built and owned by the client cache and are never mutated
    after creation, so consumers can use them as stable memoization keys.

    Attributes:
        config: The repository identity the handle was built for.
        preview_token: The preview token, or None in normal mode.
        client: The underlying content API client.
    """

    __slots__ = ("config", "preview_token", "client")

    def __init__(
        self,
        config: ClientConfig,
        client: ContentClient,
        preview_token: str | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.preview_token = preview_token

    @property
    def is_preview(self) -> bool:
        """True when queries run against a preview session."""
        return self.preview_token is not None

    @property
    def key(self) -> ClientKey:
        return ClientKey.for_config(self.config, self.preview_token)

    async def run(self, query_fn: Callable[["ClientHandle", Any], Any], props: Any = None) -> Any:
        """Run a query callback against this handle.

        The callback receives the handle and the caller's props. It may be a
        plain function or a coroutine function; its result or exception is
        passed through unchanged.

        Examples:
            >>> async def get_home(handle, props):
            ...     return await handle.client.get_by_uid("page", props["uid"])
            >>> page = await handle.run(get_home, {"uid": "home"})
        """
        result = query_fn(self, props)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        mode = "preview" if self.is_preview else "normal"
        return f"<ClientHandle {self.config.repository} {mode}>"


class WebhookOutcome(str, Enum):
    """Terminal outcome of one webhook call.

    Attributes:
        DISPATCHED: Trusted call, invalidation callback completed (200).
        DISPATCH_FAILED: Trusted call, invalidation callback raised (500).
        SECRET_NOT_CONFIGURED: Caller sent a secret but none is configured (400).
        SECRET_MISMATCH: A secret is configured and the caller's differs (401).
    """

    DISPATCHED = "dispatched"
    DISPATCH_FAILED = "dispatch_failed"
    SECRET_NOT_CONFIGURED = "secret_not_configured"
    SECRET_MISMATCH = "secret_mismatch"

    @property
    def status_code(self) -> int:
        return _OUTCOME_STATUS[self]


_OUTCOME_STATUS = {
    WebhookOutcome.DISPATCHED: 200,
    WebhookOutcome.DISPATCH_FAILED: 500,
    WebhookOutcome.SECRET_NOT_CONFIGURED: 400,
    WebhookOutcome.SECRET_MISMATCH: 401,
}


class WebhookResult:
    """Result of webhook processing.

    Attributes:
        outcome: The terminal outcome.
        error: The captured callback failure for DISPATCH_FAILED, else None.
    """

    def __init__(self, outcome: WebhookOutcome, error: CallbackError | None = None) -> None:
        self.outcome = outcome
        self.error = error

    @property
    def status_code(self) -> int:
        return self.outcome.status_code

    def __repr__(self) -> str:
        return f"<WebhookResult {self.outcome.value} {self.status_code}>"
