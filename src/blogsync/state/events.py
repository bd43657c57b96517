"""Stream actions.

Every change to a stream's state is expressed as one of these actions and
applied by :func:`blogsync.state.reducer.reduce`. Fetch completions are
Result-like: a request resolves to exactly one of :class:`PageLoaded` or
:class:`PageFailed`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from blogsync.exceptions import FetchError


class StreamAction(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class ResetRequested(StreamAction):
    signature: str
    token: int


class PageRequested(StreamAction):
    page: int = Field(ge=1)
    token: int


class PageLoaded(StreamAction):
    page: int = Field(ge=1)
    token: int
    items: tuple[Any, ...] = ()
    returned_count: int = Field(ge=0)


class PageFailed(StreamAction):
    page: int = Field(ge=1)
    token: int
    error: FetchError


class ErrorReported(StreamAction):
    """A mutation outside paging failed (delete, mark-all-read)."""

    error: FetchError


class ItemRemoved(StreamAction):
    item_id: str


class SeenFlagsApplied(StreamAction):
    """Set seen flags on loaded notifications and the unread counter together."""

    seen: dict[str, bool] = Field(default_factory=dict)
    unread_count: int = Field(ge=0)
    has_new: bool | None = None


class CountersPolled(StreamAction):
    epoch: int
    unread_count: int | None = None
    has_new: bool = False
    newest_timestamp: datetime | None = None


class TotalCountSet(StreamAction):
    total_count: int = Field(ge=0)
