"""Configuration module for the headless content middleware.

This module provides two immutable configuration models:

- ClientConfig: the repository identity used to build and cache API clients.
- HeadlessConfig: the full middleware configuration, including the webhook
  and preview settings.

Example:
    Basic usage::

        >>> config = HeadlessConfig(repo="demo", link_resolver=lambda doc: "/")
        >>> config.endpoint
        'https://demo.cdn.prismic.io/api/v2'
        >>> config.preview_enabled
        False

    Loading from environment::

        >>> import os
        >>> os.environ['HEADLESS_REPO'] = 'demo'
        >>> os.environ['HEADLESS_ACCESS_TOKEN'] = 'secret-token'
        >>> config = HeadlessConfig.from_env(link_resolver=resolve_link)
        >>> config.preview_enabled
        True
"""

import os
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from headless_middleware.exceptions import ConfigurationError

DEFAULT_PREVIEW_COOKIE = "io.prismic.preview"

# Preview sessions opened by the content API last thirty minutes
DEFAULT_PREVIEW_COOKIE_MAX_AGE = 30 * 60

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def default_api_endpoint(repository: str) -> str:
    """Build the REST API v2 endpoint for a repository name.

    Args:
        repository: Repository name, e.g. "demo".

    Returns:
        The CDN endpoint URL.

    Example:
        >>> default_api_endpoint("demo")
        'https://demo.cdn.prismic.io/api/v2'
    """
    return f"https://{repository}.cdn.prismic.io/api/v2"


def _split_repo(value: str) -> tuple[str, str | None]:
    """Split a repository setting into (name, endpoint).

    Accepts either a bare repository name or a full endpoint URL.
    """
    if value.startswith(("http://", "https://")):
        host = urlparse(value).hostname or ""
        name = host.split(".", 1)[0]
        if not name:
            raise ValueError(f"Cannot derive repository name from endpoint {value!r}")
        return name, value.rstrip("/")
    return value, None


class ClientConfig(BaseModel):
    """Repository identity used by the client cache.

    Attributes:
        repository: Repository name, e.g. "demo".
        access_token: Optional credential. Preview support requires it.
        api_endpoint: REST API v2 endpoint of the repository.

    Note:
        Two configs are interchangeable for caching purposes when they share
        a repository and both have (or both lack) an access token. See
        ``cache_key``.
    """

    repository: str = Field(..., min_length=1, description="Repository name")
    access_token: str | None = Field(default=None, description="API access token")
    api_endpoint: str = Field(default="", description="REST API v2 endpoint")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def fill_endpoint(cls, data: Any) -> Any:
        """Derive the endpoint from the repository name when not given."""
        if isinstance(data, dict) and not data.get("api_endpoint") and data.get("repository"):
            data = {**data, "api_endpoint": default_api_endpoint(data["repository"])}
        return data

    @property
    def cache_key(self) -> tuple[str, bool]:
        """Identity of this config for client caching."""
        return (self.repository, self.access_token is not None)

    @property
    def preview_enabled(self) -> bool:
        """Whether preview sessions can be honoured with this config."""
        return self.access_token is not None


class HeadlessConfig(BaseModel):
    """Configuration for the headless content middleware.

    Attributes:
        repo: Repository name or full REST API v2 endpoint URL. Required.
        access_token: Optional API credential. Enables preview support.
        webhook_secret: Optional shared secret expected in webhook bodies.
        webhook_callback: Optional invalidation hook run on accepted webhooks.
            May be a plain function or a coroutine function.
        link_resolver: Maps a resolved document to a site path. Required.
        api_endpoint: Endpoint override. Derived from ``repo`` when empty.
        mount_path: Path prefix of the preview and webhook routes.
        preview_cookie_name: Name of the preview session cookie.
        preview_cookie_max_age: Lifetime in seconds of the preview cookie.
        default_preview_url: Redirect target when a previewed document
            cannot be resolved.
        log_level: Level passed to ``configure_logging``.
        log_json: Emit JSON logs when True, console output otherwise.

    Setup code should build the config through ``from_env``, ``from_dict``
    or by handing a mapping to ``HeadlessRuntime``; those raise
    ConfigurationError. Direct construction raises pydantic's
    ValidationError.

    Example:
        >>> config = HeadlessConfig(
        ...     repo="https://demo.cdn.prismic.io/api/v2",
        ...     access_token="token",
        ...     link_resolver=lambda doc: f"/{doc['uid']}",
        ... )
        >>> config.repository
        'demo'
    """

    repo: str = Field(..., min_length=1, description="Repository name or endpoint URL")
    access_token: str | None = Field(default=None, description="API access token")
    webhook_secret: str | None = Field(default=None, description="Shared webhook secret")
    webhook_callback: Callable[[], Any] | None = Field(
        default=None,
        description="Invalidation hook run after an accepted webhook",
    )
    link_resolver: Callable[[dict[str, Any]], str] = Field(
        ...,
        description="Maps a document to a site path",
    )
    api_endpoint: str = Field(default="", description="REST API v2 endpoint override")
    mount_path: str = Field(default="/api", description="Route prefix for preview/webhook")
    preview_cookie_name: str = Field(
        default=DEFAULT_PREVIEW_COOKIE,
        min_length=1,
        description="Name of the preview session cookie",
    )
    preview_cookie_max_age: int = Field(
        default=DEFAULT_PREVIEW_COOKIE_MAX_AGE,
        description="Preview cookie lifetime in seconds",
    )
    default_preview_url: str = Field(
        default="/",
        description="Redirect target when a previewed document cannot be resolved",
    )
    log_level: str = Field(default="INFO", description="Middleware log level")
    log_json: bool = Field(default=True, description="Emit JSON logs")

    model_config = {"frozen": True}

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Strip the repository setting and reject blank values.

        Raises:
            ValueError: If the value is blank or an unusable URL.
        """
        v = v.strip()
        if not v:
            raise ValueError("repo must not be blank")
        _split_repo(v)
        return v

    @field_validator("access_token", "webhook_secret")
    @classmethod
    def blank_is_none(cls, v: str | None) -> str | None:
        """Treat empty credentials as not configured."""
        if v is None or not v.strip():
            return None
        return v

    @field_validator("mount_path")
    @classmethod
    def validate_mount_path(cls, v: str) -> str:
        """Normalize the mount path to a leading slash and no trailing slash.

        Example:
            >>> HeadlessConfig(repo="demo", link_resolver=str, mount_path="api/").mount_path
            '/api'
        """
        v = "/" + v.strip().strip("/")
        return "" if v == "/" else v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level name and reject unknown levels."""
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return v

    @field_validator("preview_cookie_max_age")
    @classmethod
    def validate_cookie_max_age(cls, v: int) -> int:
        """Validate the preview cookie lifetime is positive."""
        if v <= 0:
            raise ValueError(f"preview_cookie_max_age must be > 0, got {v}")
        return v

    @property
    def repository(self) -> str:
        """Repository name, derived from ``repo``."""
        return _split_repo(self.repo)[0]

    @property
    def endpoint(self) -> str:
        """Effective REST API v2 endpoint."""
        if self.api_endpoint:
            return self.api_endpoint.rstrip("/")
        return _split_repo(self.repo)[1] or default_api_endpoint(self.repository)

    @property
    def preview_enabled(self) -> bool:
        """Preview requires an access token to authenticate against the API."""
        return self.access_token is not None

    @property
    def preview_path(self) -> str:
        """Full path of the preview route."""
        return f"{self.mount_path}/preview"

    @property
    def webhook_path(self) -> str:
        """Full path of the webhook route."""
        return f"{self.mount_path}/webhook"

    def client_config(self) -> ClientConfig:
        """Build the repository identity used for client caching."""
        return ClientConfig(
            repository=self.repository,
            access_token=self.access_token,
            api_endpoint=self.endpoint,
        )

    @classmethod
    def from_env(cls, prefix: str = "HEADLESS_", **overrides: Any) -> "HeadlessConfig":
        """Create configuration from environment variables.

        String settings are read from ``<prefix><FIELD_NAME>``. Callables
        (``link_resolver``, ``webhook_callback``) cannot live in the
        environment and must be passed as keyword overrides.

        Args:
            prefix: Prefix for environment variable names.
            **overrides: Values that take precedence over the environment.

        Returns:
            HeadlessConfig instance.

        Raises:
            ConfigurationError: If required settings are missing or invalid.

        Example:
            >>> os.environ['HEADLESS_REPO'] = 'demo'
            >>> HeadlessConfig.from_env(link_resolver=lambda doc: "/").repo
            'demo'
        """
        field_types = {
            "repo": str,
            "access_token": str,
            "webhook_secret": str,
            "api_endpoint": str,
            "mount_path": str,
            "preview_cookie_name": str,
            "preview_cookie_max_age": int,
            "default_preview_url": str,
            "log_level": str,
            "log_json": bool,
        }

        config_dict: dict[str, Any] = {}
        for field_name, field_type in field_types.items():
            env_value = os.environ.get(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue
            if field_type is int:
                try:
                    config_dict[field_name] = int(env_value)
                except ValueError as e:
                    raise ConfigurationError(
                        f"{prefix}{field_name.upper()} must be an integer, got {env_value!r}"
                    ) from e
            elif field_type is bool:
                lowered = env_value.strip().lower()
                if lowered not in _TRUE_VALUES + _FALSE_VALUES:
                    raise ConfigurationError(
                        f"{prefix}{field_name.upper()} must be a boolean, got {env_value!r}"
                    )
                config_dict[field_name] = lowered in _TRUE_VALUES
            else:
                config_dict[field_name] = env_value

        config_dict.update(overrides)
        return cls.from_dict(config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "HeadlessConfig":
        """Create configuration from a dictionary.

        Raises:
            ConfigurationError: If the dictionary is missing required keys or
                contains invalid values.
        """
        try:
            return cls(**config_dict)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigurationError(
                f"Invalid middleware configuration: {fields}",
                errors=e.errors(),
            ) from e
