"""Shared helpers for REST endpoint modules.

This module centralizes the repeated patterns:
- unwrapping list envelopes (``{"blogs": [...]}``)
- validating records into models, skipping malformed ones

It is internal to blogsync and may change at any time.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from blogsync.exceptions import BlogTransportError
from blogsync.models.stream import PageData

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def unwrap_list(response: Any, key: str, *, endpoint: str) -> list[Any]:
    """Return ``response[key]`` as a list, or raise on an unexpected shape."""
    if isinstance(response, list):
        return response
    if not isinstance(response, dict):
        raise BlogTransportError(f"Unexpected response from {endpoint}: {type(response).__name__}", endpoint=endpoint)
    value = response.get(key, [])
    if not isinstance(value, list):
        raise BlogTransportError(f"Field {key!r} from {endpoint} is not a list", endpoint=endpoint)
    return value


def parse_page(records: list[Any], model: type[M], *, endpoint: str) -> PageData:
    """Validate *records* into *model* instances.

    ``returned_count`` is the raw record count, so a malformed record that
    is skipped still counts toward the has-more heuristic.
    """
    items: list[M] = []
    for record in records:
        try:
            items.append(model.model_validate(record))
        except ValidationError as exc:
            _logger.warning("Skipping malformed %s record from %s: %s", model.__name__, endpoint, exc)
    return PageData(items=tuple(items), returned_count=len(records))


def unwrap_object(response: Any, *, endpoint: str) -> dict[str, Any]:
    if not isinstance(response, dict):
        raise BlogTransportError(f"Unexpected response from {endpoint}: {type(response).__name__}", endpoint=endpoint)
    return response
