"""Preview session detection.

A preview session is signalled by the content API's preview cookie. Its
value is either a bare preview token, or URL-encoded JSON keyed by repository
host::

    {"demo.prismic.io": {"preview": "https://demo.prismic.io/previews/..."}}

Detection is a pure lookup: it holds no state, never writes the cookie and
never raises. Anything it cannot make sense of counts as "no preview".

Examples:
    Server side, from an incoming request::

        session = PreviewSession(repository="demo")
        token = session.detect(request)

    Client side, from a ``document.cookie`` string::

        token = session.detect("theme=dark; io.prismic.preview=...")
"""

import json
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from headless_middleware.config import DEFAULT_PREVIEW_COOKIE
from headless_middleware.observability.logging import get_logger
from headless_middleware.utils.cookies import parse_cookie_header

logger = get_logger(__name__)

# URL-safe characters only: preview tokens are ref URLs
_TOKEN_RE = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&()*+,;=%]+$")


def _cookies_of(source: Any) -> Mapping[str, str]:
    """Extract a cookie mapping from the supported source types."""
    if source is None:
        return {}
    if isinstance(source, str):
        return parse_cookie_header(source)
    # Starlette requests are Mappings over the ASGI scope: check attributes first
    cookies = getattr(source, "cookies", None)
    if isinstance(cookies, Mapping):
        return cookies
    headers = getattr(source, "headers", None)
    if isinstance(headers, Mapping):
        for name, value in headers.items():
            if name.lower() == "cookie":
                return parse_cookie_header(value)
        return {}
    if isinstance(source, Mapping):
        return source
    return {}


class PreviewSession:
    """Reads the preview token from a request or client cookie store.

    Attributes:
        cookie_name: Name of the preview cookie.
        repository: When set, only this repository's entry of a JSON cookie
            is considered.
        enabled: When False, detection always reports normal mode. Used for
            deployments without an access token, where preview is impossible.
    """

    def __init__(
        self,
        cookie_name: str = DEFAULT_PREVIEW_COOKIE,
        repository: str | None = None,
        enabled: bool = True,
    ) -> None:
        self.cookie_name = cookie_name
        self.repository = repository
        self.enabled = enabled

    def detect(self, source: Any) -> str | None:
        """Return the active preview token, or None.

        Args:
            source: A Starlette request, any object with a ``cookies``
                mapping or ``headers`` mapping, a cookie mapping, a raw cookie
                string, or None.

        Returns:
            The preview token, or None if preview is disabled or the cookie
            is absent, empty or malformed.
        """
        if not self.enabled:
            return None
        try:
            raw = _cookies_of(source).get(self.cookie_name)
        except Exception as e:
            # Request objects may fail to parse their own headers
            logger.debug("preview.cookie_unreadable", error=str(e))
            return None
        if not raw:
            return None
        return self._parse(raw)

    def _parse(self, raw: str) -> str | None:
        value = unquote(raw).strip()
        if not value:
            return None

        if value.startswith("{"):
            try:
                data = json.loads(value)
            except ValueError:
                logger.debug("preview.cookie_malformed", cookie=self.cookie_name)
                return None
            return self._from_json(data)

        if _TOKEN_RE.match(value):
            return value
        logger.debug("preview.cookie_malformed", cookie=self.cookie_name)
        return None

    def _from_json(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None

        for host, entry in data.items():
            if self.repository and host.split(".", 1)[0] != self.repository:
                continue
            if isinstance(entry, dict):
                token = entry.get("preview")
                if isinstance(token, str) and token.strip():
                    return token.strip()
        return None
