"""Utility functions for the headless content middleware."""

from headless_middleware.utils.cookies import (
    encode_preview_cookie,
    format_set_cookie,
    parse_cookie_header,
)

__all__ = [
    "encode_preview_cookie",
    "format_set_cookie",
    "parse_cookie_header",
]
