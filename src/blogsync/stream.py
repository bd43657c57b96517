"""Generic paginated resource stream.

A :class:`PaginatedStream` accumulates the pages of one resource kind under
one filter signature. It guarantees:

* at most one in-flight request per page under the current sequence token;
* responses issued before the latest :meth:`PaginatedStream.reset` are
  dropped on arrival ("last issued wins"), with no transport-level abort;
* a failed page never modifies the loaded items.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Mapping
from typing import Any, Generic, Protocol, TypeVar

from blogsync.exceptions import BlogSyncError, FetchError, RaceDiscard
from blogsync.models.stream import PageData, StreamState
from blogsync.state.events import (
    ErrorReported,
    PageFailed,
    PageLoaded,
    PageRequested,
    ResetRequested,
    StreamAction,
)
from blogsync.state.policy import default_item_key
from blogsync.state.reducer import reduce

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class PageFetcher(Protocol):
    """Resource fetch collaborator.

    ``returned_count`` of the result must not exceed *page_size*.
    """

    async def fetch_page(
        self,
        kind: str,
        page: int,
        page_size: int,
        params: Mapping[str, str],
    ) -> PageData:
        ...


StateListener = Callable[[Any], None]


class PaginatedStream(Generic[T]):
    """Accumulated, paginated state of one resource kind.

    Usage::

        stream = PaginatedStream("search-blogs", client, page_size=9)
        stream.reset(filters.signature)
        await stream.load_page(1)
        await stream.load_next()
    """

    def __init__(
        self,
        kind: str,
        fetcher: PageFetcher,
        *,
        page_size: int,
        params: Mapping[str, str] | None = None,
        signature: str = "",
        key: Callable[[Any], str | None] = default_item_key,
    ) -> None:
        self._kind = kind
        self._fetcher = fetcher
        self._params: dict[str, str] = dict(params or {})
        self._key = key
        self._tokens = itertools.count(1)
        self._in_flight: dict[int, asyncio.Task[Any]] = {}
        self._listeners: list[StateListener] = []
        # True between a reset and the first page resolving under it.
        self._pristine = True
        self._state: Any = self._initial_state(kind, page_size)
        self._dispatch(ResetRequested(signature=signature, token=next(self._tokens)))

    def _initial_state(self, kind: str, page_size: int) -> StreamState:
        return StreamState(kind=kind, page_size=page_size)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def state(self) -> StreamState:
        return self._state  # type: ignore[no-any-return]

    @property
    def items(self) -> tuple[T, ...]:
        return self._state.items  # type: ignore[no-any-return]

    @property
    def params(self) -> dict[str, str]:
        return dict(self._params)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Receive every new state snapshot. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _dispatch(self, action: StreamAction) -> None:
        """Single mutation point for this stream's state."""
        previous = self._state
        self._state = reduce(previous, action, key=self._key)
        if self._state is previous:
            return
        for listener in list(self._listeners):
            listener(self._state)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def reset(
        self,
        signature: str,
        *,
        params: Mapping[str, str] | None = None,
        force: bool = False,
    ) -> bool:
        """Clear items and start a new sequence under *signature*.

        Repeating a reset with the same signature before any page resolved
        under it is a no-op unless *force* is set. Returns whether a new
        sequence token was issued.
        """
        if params is not None:
            self._params = dict(params)
        if not force and self._pristine and signature == self._state.filter_signature:
            return False
        token = next(self._tokens)
        # In-flight tasks keep running; their results are discarded on arrival.
        self._in_flight.clear()
        self._pristine = True
        self._dispatch(ResetRequested(signature=signature, token=token))
        _logger.debug("Stream %s reset signature=%r token=%d", self._kind, signature, token)
        return True

    async def load_page(self, page: int) -> StreamState:
        """Request one page, sharing any identical in-flight request."""
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        task = self._in_flight.get(page)
        if task is None:
            task = self._issue(page)
        await asyncio.shield(task)
        return self.state

    async def load_next(self) -> StreamState:
        """Load ``current_page + 1``; no-op without more pages or while loading."""
        state = self._state
        if not state.has_more or self._in_flight:
            return self.state
        return await self.load_page(state.current_page + 1)

    def report_error(self, error: FetchError) -> None:
        """Record a failed action on this resource without touching its items."""
        self._dispatch(ErrorReported(error=error))

    async def refresh(self) -> StreamState:
        """Drop loaded pages and reload page 1 under the current signature."""
        self.reset(self._state.filter_signature, force=True)
        return await self.load_page(1)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request_params(self) -> dict[str, str]:
        return dict(self._params)

    def _issue(self, page: int) -> asyncio.Task[Any]:
        token = self._state.last_sequence_token
        self._dispatch(PageRequested(page=page, token=token))
        task = asyncio.ensure_future(self._fetch(page, token, self._request_params()))
        self._in_flight[page] = task

        def _forget(done: asyncio.Task[Any]) -> None:
            if self._in_flight.get(page) is done:
                del self._in_flight[page]

        task.add_done_callback(_forget)
        return task

    async def _fetch(self, page: int, token: int, params: dict[str, str]) -> None:
        page_size = self._state.page_size
        outcome: PageLoaded | PageFailed
        try:
            data = await self._fetcher.fetch_page(self._kind, page, page_size, params)
        except BlogSyncError as exc:
            outcome = PageFailed(page=page, token=token, error=FetchError.from_exception(exc))
        except Exception as exc:
            self._apply(PageFailed(page=page, token=token, error=FetchError.from_exception(exc)))
            raise
        else:
            returned = min(data.returned_count, page_size)
            outcome = PageLoaded(page=page, token=token, items=tuple(data.items), returned_count=returned)
        self._apply(outcome)

    def _apply(self, outcome: PageLoaded | PageFailed) -> None:
        try:
            self._dispatch(outcome)
        except RaceDiscard as exc:
            _logger.debug("Stream %s dropped page %d: %s", self._kind, outcome.page, exc)
            return
        if isinstance(outcome, PageLoaded):
            self._pristine = False
            self._on_page_loaded(outcome.page)
            _logger.debug(
                "Stream %s page %d applied (%d items, has_more=%s)",
                self._kind,
                outcome.page,
                outcome.returned_count,
                self._state.has_more,
            )
        else:
            _logger.debug("Stream %s page %d failed: %s", self._kind, outcome.page, outcome.error)

    def _on_page_loaded(self, page: int) -> None:
        """Hook for subclasses; runs after a page was applied."""
