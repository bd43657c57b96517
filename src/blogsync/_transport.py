"""HTTP transport with bearer-token injection and 401 handling."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import aiohttp

from blogsync._constants import USER_AGENT
from blogsync._redact import redact_for_log
from blogsync.config import BlogSyncConfig
from blogsync.exceptions import BlogAuthenticationError, BlogTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        ...


class RestTransport:
    """JSON-over-HTTP transport for the blogging API.

    Adds ``Authorization: Bearer <token>`` whenever *token_provider* returns
    a token, and calls *on_unauthorized* before raising on HTTP 401 so the
    owner can purge the persisted credential.
    """

    def __init__(
        self,
        config: BlogSyncConfig,
        http_session: aiohttp.ClientSession,
        *,
        token_provider: Callable[[], str | None] | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        token = self._token_provider() if self._token_provider is not None else None
        if token:
            headers["authorization"] = f"Bearer {token}"
        return headers

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send a JSON request and return the decoded JSON body.

        Raises
        ------
        BlogAuthenticationError
            The server answered 401.
        BlogTransportError
            Connection failure, timeout, any other non-2xx status or a body
            that is not JSON.
        """
        url = f"{self._config.base_url}{endpoint}"
        body = json.dumps(dict(payload)) if payload is not None else None

        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and payload is not None:
            _logger.debug("request %s payload=%s", endpoint, redact_for_log(dict(payload)))

        try:
            async with self._http.request(
                method,
                url,
                data=body,
                headers=self._build_headers(),
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise BlogTransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        if status == 401:
            if self._on_unauthorized is not None:
                self._on_unauthorized()
            raise BlogAuthenticationError(
                f"HTTP 401 from {endpoint}",
                status_code=status,
                endpoint=endpoint,
            )
        if not 200 <= status < 300:
            raise BlogTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if not text.strip():
            return {}
        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise BlogTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("response %s body=%s", endpoint, redact_for_log(result))
        return result
