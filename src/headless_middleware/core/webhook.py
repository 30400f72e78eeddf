"""Webhook trust check and dispatch state machine.

Every inbound webhook call takes exactly one transition to a terminal
outcome. Rules are evaluated in this order:

    1. secret provided, none configured          -> SECRET_NOT_CONFIGURED (400)
    2. secret configured, provided one differs    -> SECRET_MISMATCH       (401)
       (including no secret provided)
    3. otherwise run the callback (no-op if unset):
         completes                                -> DISPATCHED            (200)
         raises / its awaitable fails             -> DISPATCH_FAILED       (500)

The gateway performs no caching itself. Its callback typically clears an
external content cache, which keeps trust checking decoupled from content
invalidation.

Examples:
    Running the gateway::

        gateway = WebhookGateway(
            webhook_secret="abc",
            webhook_callback=content_cache.clear,
        )

        result = await gateway.handle(secret_provided=body.get("secret"))
        return JSONResponse({"outcome": result.outcome.value}, status_code=result.status_code)
"""

import hmac
import inspect
from collections.abc import Callable
from typing import Any

from headless_middleware.exceptions import CallbackError, TrustError
from headless_middleware.models import WebhookOutcome, WebhookResult
from headless_middleware.observability.logging import get_logger
from headless_middleware.observability.metrics import record_webhook

logger = get_logger(__name__)


def _as_bytes(value: str) -> bytes:
    return value.encode("utf-8", "surrogatepass")


def evaluate_trust(secret_provided: str | None, webhook_secret: str | None) -> WebhookOutcome | None:
    """Apply the trust rules of the decision table.

    Args:
        secret_provided: Secret sent by the caller, if any.
        webhook_secret: Secret configured for this deployment, if any.

    Returns:
        The rejecting outcome, or None when the call is trusted.

    Examples:
        >>> evaluate_trust("x", None)
        <WebhookOutcome.SECRET_NOT_CONFIGURED: 'secret_not_configured'>
        >>> evaluate_trust(None, None) is None
        True
    """
    if secret_provided is not None and webhook_secret is None:
        return WebhookOutcome.SECRET_NOT_CONFIGURED

    if webhook_secret is not None and (
        secret_provided is None
        or not hmac.compare_digest(_as_bytes(secret_provided), _as_bytes(webhook_secret))
    ):
        return WebhookOutcome.SECRET_MISMATCH

    return None


class WebhookGateway:
    """Validates and dispatches inbound webhook calls.

    Attributes:
        webhook_secret: Shared secret expected from callers, if any.
        webhook_callback: Invalidation hook, sync or async, if any.
    """

    def __init__(
        self,
        webhook_secret: str | None = None,
        webhook_callback: Callable[[], Any] | None = None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.webhook_callback = webhook_callback

    def verify(self, secret_provided: str | None) -> None:
        """Check the caller's secret.

        Raises:
            TrustError: If the call must be rejected. ``outcome`` carries
                SECRET_NOT_CONFIGURED or SECRET_MISMATCH.
        """
        outcome = evaluate_trust(secret_provided, self.webhook_secret)
        if outcome is WebhookOutcome.SECRET_NOT_CONFIGURED:
            raise TrustError("Webhook secret provided but none is configured", outcome)
        if outcome is WebhookOutcome.SECRET_MISMATCH:
            raise TrustError("Webhook secret does not match", outcome)

    async def dispatch(self) -> None:
        """Run the callback, awaiting it if it returns an awaitable.

        Raises:
            CallbackError: If the callback or its awaitable failed.
        """
        if self.webhook_callback is None:
            return
        try:
            result = self.webhook_callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise CallbackError(f"Webhook callback failed: {e}", cause=e) from e

    async def handle(self, secret_provided: str | None) -> WebhookResult:
        """Process one webhook call to its terminal outcome.

        Trust and callback failures are resolved here and never raised.

        Args:
            secret_provided: The ``secret`` field of the webhook body.

        Returns:
            WebhookResult with the outcome and, for DISPATCH_FAILED, the
            captured CallbackError.
        """
        try:
            self.verify(secret_provided)
            await self.dispatch()
            result = WebhookResult(WebhookOutcome.DISPATCHED)
        except TrustError as e:
            logger.warning("webhook.rejected", outcome=e.outcome.value, reason=e.message)
            result = WebhookResult(e.outcome)
        except CallbackError as e:
            logger.error("webhook.dispatch_failed", error=str(e.cause))
            result = WebhookResult(WebhookOutcome.DISPATCH_FAILED, error=e)
        else:
            logger.info("webhook.dispatched", has_callback=self.webhook_callback is not None)

        record_webhook(result.outcome.value, result.status_code)
        return result
