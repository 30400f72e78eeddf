"""
Headless content middleware for Python web applications.

This package caches content API clients per repository and preview session,
runs caller-supplied queries against the right client, authenticates and
dispatches content webhooks, and serves the preview session route.
"""

__version__ = "0.1.0"

from headless_middleware.cache import ClientCache
from headless_middleware.config import ClientConfig, HeadlessConfig
from headless_middleware.core import (
    PendingResults,
    PreviewRemountController,
    PreviewSession,
    QueryContext,
    QueryService,
    WebhookGateway,
)
from headless_middleware.models import ClientHandle, WebhookOutcome, WebhookResult
from headless_middleware.runtime import HeadlessRuntime

__all__ = [
    "__version__",
    "ClientCache",
    "ClientConfig",
    "ClientHandle",
    "HeadlessConfig",
    "HeadlessRuntime",
    "PendingResults",
    "PreviewRemountController",
    "PreviewSession",
    "QueryContext",
    "QueryService",
    "WebhookGateway",
    "WebhookOutcome",
    "WebhookResult",
]
