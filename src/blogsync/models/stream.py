"""Paginated stream state snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from blogsync.exceptions import FetchError


class PageData(BaseModel):
    """One page as returned by a page fetcher.

    ``returned_count`` is the number of records the server sent for the
    page; it drives the has-more heuristic.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: tuple[Any, ...] = ()
    returned_count: int = -1

    @model_validator(mode="after")
    def _default_count(self) -> PageData:
        if self.returned_count < 0:
            object.__setattr__(self, "returned_count", len(self.items))
        return self


class StreamState(BaseModel):
    """Immutable snapshot of one paginated stream.

    ``items`` keep server order and only grow within one filter signature.
    ``has_more`` is true iff the most recent page came back full
    (``returned_count == page_size``); the API does not report totals, so
    this is an approximation. ``last_sequence_token`` is the token of the
    latest reset; responses carrying any other token are discarded.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: str
    page_size: int = Field(gt=0)
    items: tuple[Any, ...] = ()
    current_page: int = 0
    has_more: bool = True
    loading: bool = False
    error: FetchError | None = None
    filter_signature: str = ""
    last_sequence_token: int = 0
    pending_pages: frozenset[int] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.items


class NotificationStreamState(StreamState):
    """Stream snapshot plus counters that move independently of paging.

    ``counter_epoch`` increments on every local counter mutation so a poll
    issued before the mutation can be recognised as stale.
    """

    unread_count: int = 0
    total_count: int = 0
    has_new: bool = False
    newest_timestamp: datetime | None = None
    deleted_count: int = 0
    counter_epoch: int = 0
