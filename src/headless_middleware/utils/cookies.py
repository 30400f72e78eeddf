"""Cookie parsing and formatting utilities for the headless content middleware.

This module provides functions for:
- Parsing a raw ``Cookie`` header or ``document.cookie`` string
- Encoding the preview session cookie value
- Formatting a ``Set-Cookie`` header
"""

import json
from urllib.parse import quote


def parse_cookie_header(raw: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header into a name -> value mapping.

    Pairs without ``=`` are skipped. When a name repeats, the first value
    wins, matching how browsers order the most specific cookie first.
    Values are returned as sent (still URL-encoded).

    Args:
        raw: Cookie header value, e.g. ``"a=1; b=2"``.

    Returns:
        Mapping of cookie names to raw values.

    Example:
        >>> parse_cookie_header("theme=dark; io.prismic.preview=abc")
        {'theme': 'dark', 'io.prismic.preview': 'abc'}
    """
    cookies: dict[str, str] = {}
    if not raw:
        return cookies

    for part in raw.split(";"):
        name, sep, value = part.strip().partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies.setdefault(name, value)

    return cookies


def encode_preview_cookie(repository: str, token: str) -> str:
    """Encode a preview token the way the content API's toolbar expects it.

    Example:
        >>> encode_preview_cookie("demo", "tok")
        '%7B%22demo.prismic.io%22%3A%7B%22preview%22%3A%22tok%22%7D%7D'
    """
    payload = {f"{repository}.prismic.io": {"preview": token}}
    return quote(json.dumps(payload, separators=(",", ":")), safe="")


def format_set_cookie(
    name: str,
    value: str,
    max_age: int | None = None,
    path: str = "/",
    same_site: str = "Lax",
    secure: bool = False,
) -> str:
    """Format a ``Set-Cookie`` header value.

    The preview cookie is read by client-side scripts, so HttpOnly is never
    set.

    Example:
        >>> format_set_cookie("io.prismic.preview", "abc", max_age=1800)
        'io.prismic.preview=abc; Max-Age=1800; Path=/; SameSite=Lax'
    """
    parts = [f"{name}={value}"]
    if max_age is not None:
        parts.append(f"Max-Age={max_age}")
    parts.append(f"Path={path}")
    parts.append(f"SameSite={same_site}")
    if secure:
        parts.append("Secure")
    return "; ".join(parts)
