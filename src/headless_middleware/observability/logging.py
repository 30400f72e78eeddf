"""Structured logging configuration for the headless content middleware.

Log events are emitted through structlog with event-style names
(``client_cache.constructed``, ``webhook.rejected``, ``preview.remount``) and
key/value context. Two processors are specific to this package:

- Credentials never reach the output. Values of ``access_token``,
  ``webhook_secret``, ``secret``, ``token`` and ``preview_token`` are masked.
- Every event carries the repository it belongs to when logging is
  configured from a HeadlessConfig.

Examples:
    Configure logging from the middleware configuration::

        from headless_middleware.observability.logging import configure_from_config

        configure_from_config(config)

    Use the logger::

        from headless_middleware.observability.logging import get_logger

        logger = get_logger(__name__)
        logger.info("webhook.dispatched", has_callback=True)

    Output (JSON)::

        {
            "event": "webhook.dispatched",
            "has_callback": true,
            "repository": "demo",
            "level": "info",
            "timestamp": "2024-01-01T00:00:00.000000Z"
        }
"""

import logging
import sys
from collections.abc import Callable, MutableMapping
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from headless_middleware.config import HeadlessConfig

REDACTED = "***"

CREDENTIAL_KEYS = frozenset({"access_token", "webhook_secret", "secret", "token", "preview_token"})

EventDict = MutableMapping[str, Any]


def redact_credentials(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values in an event.

    Example:
        >>> redact_credentials(None, "info", {"event": "x", "secret": "abc", "token": None})
        {'event': 'x', 'secret': '***', 'token': None}
    """
    for key in CREDENTIAL_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def add_static_context(**fields: Any) -> Callable[[Any, str, EventDict], EventDict]:
    """Build a processor adding fixed fields without overriding event values."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    stream: TextIO | None = None,
    **context: Any,
) -> None:
    """Configure structured logging for the application.

    Call once at startup. Calling again replaces the previous setup.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, emit JSON logs; if False, use console format
        stream: Output stream. Defaults to stdout.
        **context: Fields added to every event, e.g. ``repository="demo"``.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level {level!r}")
    if stream is None:
        stream = sys.stdout

    # Stdlib records (httpx, uvicorn) go to the same stream
    logging.basicConfig(format="%(message)s", stream=stream, level=level_no, force=True)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_static_context(**context),
        redact_credentials,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


def configure_from_config(config: "HeadlessConfig", stream: TextIO | None = None) -> None:
    """Configure logging from the middleware settings.

    Uses ``log_level`` and ``log_json`` and tags every event with the
    configured repository.
    """
    configure_logging(
        level=config.log_level,
        json_output=config.log_json,
        stream=stream,
        repository=config.repository,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)
    """
    return structlog.get_logger(name)
