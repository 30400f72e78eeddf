"""Core logic of the headless content middleware.

This package contains:
- Preview: preview session detection from cookies
- Query: query binding and execution against cached client handles
- Webhook: trust check and dispatch state machine
- Remount: preview-aware invalidation of pending results
- Middleware: framework-agnostic preview and webhook routes

The core logic is framework-agnostic and can be wrapped by adapters
for different web frameworks.
"""

from headless_middleware.core.preview import PreviewSession
from headless_middleware.core.query import BoundQuery, QueryContext, QueryService
from headless_middleware.core.remount import PendingResults, PreviewRemountController
from headless_middleware.core.webhook import WebhookGateway, evaluate_trust

__all__ = [
    "BoundQuery",
    "PendingResults",
    "PreviewRemountController",
    "PreviewSession",
    "QueryContext",
    "QueryService",
    "WebhookGateway",
    "evaluate_trust",
]
