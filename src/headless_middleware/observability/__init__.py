"""Observability utilities for the headless content middleware.

This package provides monitoring and debugging capabilities:
- Prometheus metrics for cache, query, webhook and preview behaviour
- Structured logging with contextual information
"""

from headless_middleware.observability.logging import (
    configure_from_config,
    configure_logging,
    get_logger,
)
from headless_middleware.observability.metrics import (
    record_cache_lookup,
    record_query,
    record_remount,
    record_webhook,
)

__all__ = [
    "configure_from_config",
    "configure_logging",
    "get_logger",
    "record_cache_lookup",
    "record_query",
    "record_remount",
    "record_webhook",
]
