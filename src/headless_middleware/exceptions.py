"""Custom exceptions for the headless content middleware.

This module defines the exception hierarchy used throughout the package to
signal configuration problems, webhook trust failures, upstream content API
failures and errors raised by caller-supplied callbacks.

Examples:
    Handling an upstream failure::

        from headless_middleware.exceptions import UpstreamError

        try:
            page = await get_page(context)
        except UpstreamError as e:
            logger.error("content.fetch_failed", error=str(e))
            return Response(status_code=502)

    Surfacing a configuration problem at startup::

        from headless_middleware.config import HeadlessConfig
        from headless_middleware.exceptions import ConfigurationError

        try:
            config = HeadlessConfig.from_env()
        except ConfigurationError as e:
            sys.exit(f"invalid configuration: {e.message}")
"""

from typing import Any


class HeadlessError(Exception):
    """Base exception for all middleware errors.

    All exceptions raised by this package inherit from this base class,
    allowing callers to catch every package-specific error with a single
    except clause.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(HeadlessError, ValueError):
    """Required configuration is missing or invalid.

    Raised at setup time, before any request is served. It is fatal to the
    call site that tried to build the configuration.

    Attributes:
        message: Human-readable error description.
        errors: Structured validation errors, when pydantic produced them.

    Examples:
        >>> try:
        ...     HeadlessConfig.from_dict({"link_resolver": lambda doc: "/"})
        ... except ConfigurationError as e:
        ...     print(e.errors[0]["loc"])
        ('repo',)
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        """Initialize the configuration error.

        Args:
            message: Human-readable error description.
            errors: Structured validation errors, if any.
        """
        super().__init__(message)
        self.errors = errors if errors is not None else []


class TrustError(HeadlessError):
    """A webhook call failed the shared-secret check.

    This exception never leaves the webhook gateway. The gateway converts it
    into the matching outcome (400 or 401) before answering the caller.

    Attributes:
        message: Human-readable error description.
        outcome: The webhook outcome the failure maps to.
    """

    def __init__(self, message: str, outcome: Any) -> None:
        """Initialize the trust error.

        Args:
            message: Human-readable error description.
            outcome: The WebhookOutcome this failure resolves to.
        """
        super().__init__(message)
        self.outcome = outcome


class UpstreamError(HeadlessError):
    """The content API call failed.

    Raised by content clients for network failures, non-success responses and
    malformed payloads. Query execution never intercepts it: the error reaches
    whoever awaited the query result unchanged.

    Attributes:
        message: Human-readable error description.
        cause: The underlying exception, if any.
        status_code: HTTP status returned by the content API, if any.

    Examples:
        Raising from a client adapter::

            try:
                response = await self._http.get(url, params=params)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise UpstreamError(f"Content API request failed: {e}", cause=e) from e
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize the upstream error.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused the failure.
            status_code: HTTP status code from the content API, if known.
        """
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code


class CallbackError(HeadlessError):
    """The caller-supplied webhook callback raised.

    The gateway captures the original exception in ``cause`` and reports a
    DISPATCH_FAILED outcome instead of letting the failure propagate.

    Attributes:
        message: Human-readable error description.
        cause: The exception raised by the callback.
    """

    def __init__(self, message: str, cause: BaseException) -> None:
        """Initialize the callback error.

        Args:
            message: Human-readable error description.
            cause: The exception raised by the callback.
        """
        super().__init__(message)
        self.cause = cause


class UnknownSliceError(HeadlessError):
    """No renderer is registered for a slice type.

    Attributes:
        message: Human-readable error description.
        slice_type: The slice type that had no matching component.
    """

    def __init__(self, slice_type: str) -> None:
        """Initialize the error for a missing slice component.

        Args:
            slice_type: The slice type that had no matching component.
        """
        super().__init__(f"No component registered for slice type {slice_type!r}")
        self.slice_type = slice_type
