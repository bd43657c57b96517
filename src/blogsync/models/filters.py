"""Filter sets and their canonical query-string form.

A :class:`FilterSet` is the search/tag/category/author selection behind a
listing. Its canonical serialization (keys in the fixed order ``q, tag,
category, author``, empty values omitted) doubles as the URL query string
and as the stream's filter signature, so two filter sets are equal exactly
when their serializations are.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from blogsync._constants import BLOG_CATEGORIES, FILTER_KEYS
from blogsync.exceptions import FilterValidationError

_logger = logging.getLogger(__name__)


class FilterSet(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    q: str | None = None
    tag: str | None = None
    category: str | None = None
    author: str | None = None

    @field_validator("q", "tag", "category", "author", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("filter values must be strings")
        text = value.strip()
        return text or None

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.lower()
        if normalized not in BLOG_CATEGORIES:
            raise ValueError(f"unknown category {value!r}")
        return normalized

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> FilterSet:
        """Strictly validate a mapping of filter values.

        Raises :class:`FilterValidationError` for unknown keys or bad values.
        """
        unknown = set(values) - set(FILTER_KEYS)
        if unknown:
            raise FilterValidationError(f"unknown filter keys: {sorted(unknown)}")
        try:
            return cls(**dict(values))
        except ValidationError as exc:
            raise FilterValidationError(str(exc)) from exc

    def items(self) -> list[tuple[str, str]]:
        """Non-empty filters in canonical key order."""
        pairs: list[tuple[str, str]] = []
        for key in FILTER_KEYS:
            value = getattr(self, key)
            if value:
                pairs.append((key, value))
        return pairs

    def as_params(self) -> dict[str, str]:
        return dict(self.items())

    def replace(self, **changes: Any) -> FilterSet:
        """Return a validated copy with *changes* applied."""
        merged: dict[str, Any] = self.as_params()
        merged.update(changes)
        return FilterSet.from_mapping({k: v for k, v in merged.items() if v is not None})

    @property
    def signature(self) -> str:
        return serialize_filters(self)

    @property
    def is_empty(self) -> bool:
        return not self.items()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterSet):
            return NotImplemented
        return self.signature == other.signature

    def __hash__(self) -> int:
        return hash(self.signature)


def serialize_filters(filters: FilterSet) -> str:
    """Encode *filters* as a deterministic query string (no leading ``?``)."""
    return urlencode(filters.items())


def deserialize_filters(query: str, *, strict: bool = False) -> FilterSet:
    """Decode a query string into a :class:`FilterSet`.

    Keys other than the filter keys are ignored. In non-strict mode (URLs
    typed or edited by the viewer) an invalid value is dropped with a
    warning; in strict mode it raises :class:`FilterValidationError`.
    """
    values: dict[str, str] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=False):
        # First occurrence wins for repeated keys.
        if key in FILTER_KEYS and key not in values:
            values[key] = value

    if strict:
        return FilterSet.from_mapping(values)

    accepted: dict[str, str] = {}
    for key, value in values.items():
        try:
            FilterSet(**{key: value})
        except ValidationError:
            _logger.warning("Ignoring invalid %s filter from URL: %r", key, value)
            continue
        accepted[key] = value
    return FilterSet(**accepted)
