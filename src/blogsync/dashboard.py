"""Dashboard: per-tab cached streams plus the blogger application status."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar
from urllib.parse import parse_qsl, urlencode

from blogsync.exceptions import BlogSyncError, FetchError
from blogsync.location import Location, LocationState
from blogsync.models.filters import FilterSet
from blogsync.models.identity import Identity
from blogsync.models.notification import BloggerApplicationStatus
from blogsync.stream import PaginatedStream

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class DashboardTab(StrEnum):
    PUBLISHED = "published"
    DRAFTS = "drafts"
    NOTIFICATIONS = "notifications"
    BLOGGER_APPLICATION = "blogger-application"


CREATOR_TABS: tuple[DashboardTab, ...] = (
    DashboardTab.PUBLISHED,
    DashboardTab.DRAFTS,
    DashboardTab.NOTIFICATIONS,
)
MEMBER_TABS: tuple[DashboardTab, ...] = (
    DashboardTab.NOTIFICATIONS,
    DashboardTab.BLOGGER_APPLICATION,
)
#: Tabs the shared search box filters.
LISTING_TABS: frozenset[DashboardTab] = frozenset({DashboardTab.PUBLISHED, DashboardTab.DRAFTS})


def available_tabs(identity: Identity) -> tuple[DashboardTab, ...]:
    return CREATOR_TABS if identity.is_creator else MEMBER_TABS


class StatusResource(Generic[T]):
    """A single, non-paginated resource with the same staleness rules as streams."""

    def __init__(self, loader: Callable[[], Awaitable[T]]) -> None:
        self._loader = loader
        self._tokens = itertools.count(1)
        self._token = 0
        self._task: asyncio.Task[None] | None = None
        self.value: T | None = None
        self.loaded = False
        self.error: FetchError | None = None

    @property
    def loading(self) -> bool:
        return self._task is not None and not self._task.done()

    async def load(self, *, force: bool = False) -> T | None:
        """Fetch the resource; concurrent calls share one request unless *force*."""
        if self._task is None or self._task.done() or force:
            self._token = next(self._tokens)
            self._task = asyncio.ensure_future(self._run(self._token))
        await asyncio.shield(self._task)
        return self.value

    async def _run(self, token: int) -> None:
        try:
            value = await self._loader()
        except BlogSyncError as exc:
            if token == self._token:
                self.error = FetchError.from_exception(exc)
            return
        if token != self._token:
            _logger.debug("Dropping superseded status response")
            return
        self.value = value
        self.loaded = True
        self.error = None


class DashboardApi(Protocol):
    async def delete_blog(self, blog_id: str) -> None:
        ...

    async def apply_for_blogger(self, reason: str, writing_samples: Sequence[str] = ()) -> None:
        ...


class DashboardController:
    """Tabbed dashboard with cache-until-manual-refresh semantics.

    A tab's resource is fetched the first time the tab is activated and
    reused afterwards. Refetches happen only on manual actions (delete,
    application submit, :meth:`refresh`) or when the shared search query
    changed since the tab's listing was last reset; the query is applied
    to a listing tab only while (or once) it is active.
    """

    def __init__(
        self,
        identity: Identity,
        streams: Mapping[DashboardTab, PaginatedStream[Any]],
        status: StatusResource[BloggerApplicationStatus],
        api: DashboardApi,
        *,
        location: Location | None = None,
    ) -> None:
        self._tabs = available_tabs(identity)
        self._streams = dict(streams)
        self._status = status
        self._api = api
        self._location = location
        self._query = ""
        self._loaded: set[DashboardTab] = set()
        missing = [tab for tab in self._tabs if tab != DashboardTab.BLOGGER_APPLICATION and tab not in self._streams]
        if missing:
            raise ValueError(f"no stream for dashboard tabs: {missing}")
        self._active = self.initial_tab(location.get_location().query if location is not None else "")

    @property
    def tabs(self) -> tuple[DashboardTab, ...]:
        return self._tabs

    @property
    def active_tab(self) -> DashboardTab:
        return self._active

    @property
    def search_query(self) -> str:
        return self._query

    @property
    def status(self) -> StatusResource[BloggerApplicationStatus]:
        return self._status

    def stream(self, tab: DashboardTab | str) -> PaginatedStream[Any]:
        return self._streams[DashboardTab(tab)]

    def initial_tab(self, query: str) -> DashboardTab:
        """Tab named by the ``tab`` query parameter, if the viewer has it."""
        requested = dict(parse_qsl(query.lstrip("?"))).get("tab")
        for tab in self._tabs:
            if tab.value == requested:
                return tab
        return self._tabs[0]

    def is_loaded(self, tab: DashboardTab | str) -> bool:
        return DashboardTab(tab) in self._loaded

    # ------------------------------------------------------------------
    # Tab activation and search
    # ------------------------------------------------------------------

    async def activate(self, tab: DashboardTab | str | None = None) -> None:
        """Show *tab* (default: the current one), loading it on first use."""
        target = self._active if tab is None else DashboardTab(tab)
        if target not in self._tabs:
            raise ValueError(f"tab {target.value!r} is not available for this viewer")
        self._active = target
        self._write_url(target)
        await self._ensure_loaded(target)

    async def set_search_query(self, query: str) -> None:
        """Apply a search query to the active listing tab only."""
        self._query = query.strip()
        if self._active in LISTING_TABS:
            await self._ensure_loaded(self._active)

    async def _ensure_loaded(self, tab: DashboardTab) -> None:
        if tab == DashboardTab.BLOGGER_APPLICATION:
            if not self._status.loaded:
                await self._status.load()
            return

        stream = self._streams[tab]
        if tab in LISTING_TABS:
            filters = FilterSet(q=self._query or None)
            if stream.state.filter_signature != filters.signature:
                stream.reset(filters.signature, params=filters.as_params())
                self._loaded.discard(tab)

        if tab in self._loaded:
            return
        self._loaded.add(tab)
        state = await stream.load_page(1)
        if state.error is not None:
            # Let the next activation try again.
            self._loaded.discard(tab)

    def _write_url(self, tab: DashboardTab) -> None:
        if self._location is None:
            return
        current = self._location.get_location()
        target = LocationState(path=current.path, query=urlencode({"tab": tab.value}))
        if target != current:
            self._location.navigate(target.url, replace=True)

    # ------------------------------------------------------------------
    # Manual refresh triggers
    # ------------------------------------------------------------------

    async def refresh(self, tab: DashboardTab | str | None = None) -> None:
        target = self._active if tab is None else DashboardTab(tab)
        if target == DashboardTab.BLOGGER_APPLICATION:
            await self._status.load(force=True)
            return
        self._loaded.add(target)
        await self._streams[target].refresh()

    async def delete_blog(self, blog_id: str) -> bool:
        """Delete a blog, then refetch the active listing tab.

        A failure lands in the active tab's ``state.error`` and nothing is
        refetched. Returns whether the server accepted the delete.
        """
        try:
            await self._api.delete_blog(blog_id)
        except BlogSyncError as exc:
            _logger.debug("Deleting blog %s failed: %s", blog_id, exc)
            stream = self._streams.get(self._active)
            if stream is not None:
                stream.report_error(FetchError.from_exception(exc))
            return False
        if self._active in LISTING_TABS:
            await self.refresh(self._active)
        return True

    async def submit_blogger_application(self, reason: str, writing_samples: Sequence[str] = ()) -> bool:
        """Submit a blogger application, then refetch its status.

        A failure is stored in ``status.error``.
        """
        try:
            await self._api.apply_for_blogger(reason, writing_samples)
        except BlogSyncError as exc:
            self._status.error = FetchError.from_exception(exc)
            return False
        await self._status.load(force=True)
        return True
