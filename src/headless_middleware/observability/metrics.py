"""Prometheus metrics for the headless content middleware.

Metrics include:

- Client cache lookups by result (hit, miss) and client constructions
- Query executions by mode (normal, preview)
- Webhook calls by outcome and status code
- Preview redirects and forced remounts

Examples:
    Recording a webhook outcome::

        from headless_middleware.observability.metrics import record_webhook

        record_webhook(outcome="dispatched", status_code=200)
"""

from prometheus_client import Counter

# Labels: result (hit, miss)
client_cache_lookups = Counter(
    "headless_client_cache_lookups_total",
    "Client cache lookups by result",
    ["result"],
)

client_constructions = Counter(
    "headless_client_constructions_total",
    "Number of API clients constructed by the client cache",
)

# Labels: mode (normal, preview)
query_executions = Counter(
    "headless_query_executions_total",
    "Query executions by client mode",
    ["mode"],
)

# Labels: outcome, status_code
webhook_requests = Counter(
    "headless_webhook_requests_total",
    "Inbound webhook calls by outcome",
    ["outcome", "status_code"],
)

preview_redirects = Counter(
    "headless_preview_redirects_total",
    "Preview sessions started through the preview route",
)

preview_remounts = Counter(
    "headless_preview_remounts_total",
    "Forced invalidations triggered by a preview session transition",
)


def record_cache_lookup(hit: bool) -> None:
    """Record a client cache lookup.

    Examples:
        >>> record_cache_lookup(hit=True)
    """
    client_cache_lookups.labels(result="hit" if hit else "miss").inc()


def record_client_construction() -> None:
    """Record a newly constructed API client."""
    client_constructions.inc()


def record_query(preview: bool) -> None:
    """Record a query execution in normal or preview mode."""
    query_executions.labels(mode="preview" if preview else "normal").inc()


def record_webhook(outcome: str, status_code: int) -> None:
    """Record a webhook outcome.

    Examples:
        >>> record_webhook("secret_mismatch", 401)
    """
    webhook_requests.labels(outcome=outcome, status_code=str(status_code)).inc()


def record_preview_redirect() -> None:
    """Record a preview session start."""
    preview_redirects.inc()


def record_remount() -> None:
    """Record a forced remount."""
    preview_remounts.inc()
