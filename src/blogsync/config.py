"""Client configuration for blogsync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from blogsync.exceptions import BlogConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class BlogSyncConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        REST API root. Defaults to a local development server.
    search_page_size : int
        Page size for blog search results and tag feeds.
    user_search_page_size : int
        Page size for user search results.
    latest_page_size : int
        Page size for the latest-blogs feed.
    dashboard_page_size : int
        Page size for the dashboard's published and drafts tabs.
    notification_page_size : int
        Page size for the notification stream.
    notification_poll_interval : float
        Seconds between background unread-count polls.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    credential_path : str or None
        JSON file used to persist the signed-in credential. When unset the
        credential only lives in memory for the lifetime of the client.
    api_trace_enabled : bool
        Log redacted request/response payloads at DEBUG level.
    """

    base_url: str = "http://localhost:3000/api"
    search_page_size: int = 9
    user_search_page_size: int = 10
    latest_page_size: int = 5
    dashboard_page_size: int = 5
    notification_page_size: int = 10
    notification_poll_interval: float = 120.0
    request_timeout: float = 30.0
    credential_path: str | None = None
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        for name in (
            "search_page_size",
            "user_search_page_size",
            "latest_page_size",
            "dashboard_page_size",
            "notification_page_size",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise BlogConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.notification_poll_interval <= 0:
            raise BlogConfigError("notification_poll_interval must be positive")
        if self.request_timeout <= 0:
            raise BlogConfigError("request_timeout must be positive")
        if not self.base_url:
            raise BlogConfigError("base_url must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> BlogSyncConfig:
        """Create configuration from environment variables.

        Reads ``BLOGSYNC_API_URL`` and the optional ``BLOGSYNC_*``
        variables below. Explicit keyword arguments override environment
        values.
        """
        env = os.environ

        _ENV_INT_MAP = {
            "BLOGSYNC_SEARCH_PAGE_SIZE": "search_page_size",
            "BLOGSYNC_USER_SEARCH_PAGE_SIZE": "user_search_page_size",
            "BLOGSYNC_LATEST_PAGE_SIZE": "latest_page_size",
            "BLOGSYNC_DASHBOARD_PAGE_SIZE": "dashboard_page_size",
            "BLOGSYNC_NOTIFICATION_PAGE_SIZE": "notification_page_size",
        }
        _ENV_FLOAT_MAP = {
            "BLOGSYNC_NOTIFICATION_POLL_INTERVAL": "notification_poll_interval",
            "BLOGSYNC_REQUEST_TIMEOUT": "request_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        url = env.get("BLOGSYNC_API_URL")
        if url is not None:
            config_kwargs["base_url"] = url.rstrip("/")

        try:
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = int(val)
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = float(val)
        except ValueError as exc:
            raise BlogConfigError(f"Invalid numeric BLOGSYNC_* value: {exc}") from exc

        credential_path = env.get("BLOGSYNC_CREDENTIAL_PATH")
        if credential_path:
            config_kwargs["credential_path"] = credential_path

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("BLOGSYNC_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
