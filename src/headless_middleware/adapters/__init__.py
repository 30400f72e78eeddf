"""Framework adapters for the headless content middleware.

- asgi.py: ASGI middleware for FastAPI, Starlette, etc.

The adapters convert between framework-specific request/response objects and
the middleware's internal representation.
"""

from headless_middleware.adapters.asgi import ASGIHeadlessMiddleware

__all__ = ["ASGIHeadlessMiddleware"]
