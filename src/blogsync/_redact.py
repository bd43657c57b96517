"""Scrub credentials from payloads before they reach DEBUG logs.

Sign-in bodies carry the password and every authenticated response may echo
an access token; both are replaced with ``<redacted>``. Long strings such
as blog content are clipped to keep traces readable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_MASK = "<redacted>"
_BEARER_PREFIX = "Bearer "
_MAX_DEPTH = 20

#: Exact key names (lower-cased) whose values are never logged.
_CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "token",
        "access_token",
        "accesstoken",
        "refresh_token",
        "refreshtoken",
        "authorization",
        "cookie",
        "set-cookie",
    }
)
_CREDENTIAL_KEY_FRAGMENTS: tuple[str, ...] = ("password", "secret")


def _is_credential_key(key: str) -> bool:
    lowered = key.lower()
    return lowered in _CREDENTIAL_KEYS or any(fragment in lowered for fragment in _CREDENTIAL_KEY_FRAGMENTS)


def _scrub_text(text: str, max_string: int) -> str:
    if text.startswith(_BEARER_PREFIX):
        return f"{_BEARER_PREFIX}{_MASK}"
    if len(text) <= max_string:
        return text
    return f"{text[:max_string]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a log-safe copy of *value*.

    Mappings and sequences are walked recursively; anything that is not a
    JSON scalar or container is rendered with ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _scrub_text(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    child_depth = _depth + 1
    if isinstance(value, Mapping):
        return {
            str(key): _MASK if _is_credential_key(str(key)) else redact_for_log(
                item, max_string=max_string, _depth=child_depth
            )
            for key, item in value.items()
        }
    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=child_depth) for item in value]
    return repr(value)
