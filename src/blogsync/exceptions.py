"""Custom exception hierarchy for blogsync."""

from __future__ import annotations

from enum import StrEnum


class BlogSyncError(Exception):
    """Base exception for all blogsync errors."""


class BlogConfigError(BlogSyncError):
    """Invalid or missing configuration."""


class BlogTransportError(BlogSyncError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class BlogAuthenticationError(BlogTransportError):
    """Credential rejected by the server (HTTP 401) or unusable locally."""


class AuthResolutionError(BlogSyncError):
    """Identity bootstrap could not reach the server.

    Route guards treat the resulting ``failed`` identity like a guest and
    send the viewer to sign-in instead of rendering the error inline.
    """


class FetchErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    NETWORK = "network"
    UNKNOWN = "unknown"


class FetchError(BlogSyncError):
    """A resource fetch failed.

    Stored in the owning stream's ``error`` field; streams never raise it
    to the caller of ``load_page``.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: FetchErrorKind = FetchErrorKind.UNKNOWN,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> FetchError:
        """Classify *exc* into a :class:`FetchError`."""
        if isinstance(exc, FetchError):
            return exc
        if isinstance(exc, BlogTransportError):
            status = exc.status_code
            if status is None:
                kind = FetchErrorKind.NETWORK
            elif status == 404:
                kind = FetchErrorKind.NOT_FOUND
            elif status in (401, 403):
                kind = FetchErrorKind.FORBIDDEN
            else:
                kind = FetchErrorKind.UNKNOWN
            return cls(str(exc), kind=kind, status_code=status, endpoint=exc.endpoint)
        return cls(str(exc) or type(exc).__name__)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FetchError):
            return NotImplemented
        return (self.kind, self.status_code, self.endpoint, str(self)) == (
            other.kind,
            other.status_code,
            other.endpoint,
            str(other),
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.status_code, self.endpoint, str(self)))


class FilterValidationError(BlogSyncError, ValueError):
    """Malformed filter input (unknown key, non-string value, bad category)."""


class RaceDiscard(BlogSyncError):
    """A response arrived after its sequence token was superseded.

    Internal only. Streams catch it and drop the response; it is never
    surfaced to the viewer.
    """

    def __init__(self, *, expected_token: int, received_token: int) -> None:
        self.expected_token = expected_token
        self.received_token = received_token
        super().__init__(f"stale response: token {received_token} superseded by {expected_token}")
