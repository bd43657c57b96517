"""Notification stream with an independent unread counter.

The unread counter is fed from two sources: the background poll and
optimistic local actions (mark-all-read, delete, mark-read). Both go
through the stream's single dispatch path. A poll result is dropped when a
local counter mutation happened, or was still in flight, between issuing
the poll and its arrival.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Protocol

from blogsync._constants import NOTIFICATION_FILTER_ALL, ResourceKind
from blogsync.exceptions import BlogSyncError, FetchError, RaceDiscard
from blogsync.models.notification import Notification, NotificationPollStatus
from blogsync.models.stream import NotificationStreamState, StreamState
from blogsync.state.events import (
    CountersPolled,
    ErrorReported,
    ItemRemoved,
    SeenFlagsApplied,
    TotalCountSet,
)
from blogsync.stream import PageFetcher, PaginatedStream

_logger = logging.getLogger(__name__)


class NotificationApi(Protocol):
    """Server-side notification mutations and counters."""

    async def mark_all_notifications_read(self) -> None:
        ...

    async def delete_notification(self, notification_id: str) -> None:
        ...

    async def poll_notifications(self) -> NotificationPollStatus:
        ...

    async def count_notifications(self, filter: str) -> int:
        ...


class NotificationSync(PaginatedStream[Notification]):
    """Paginated notification feed plus unread/total counters."""

    def __init__(
        self,
        fetcher: PageFetcher,
        api: NotificationApi,
        *,
        page_size: int,
        filter: str = NOTIFICATION_FILTER_ALL,
        poll_interval: float = 120.0,
    ) -> None:
        super().__init__(
            ResourceKind.NOTIFICATIONS,
            fetcher,
            page_size=page_size,
            params={"filter": filter},
            signature=f"filter={filter}",
        )
        self._api = api
        self._filter = filter
        self._poll_interval = poll_interval
        self._poll_task: asyncio.Task[None] | None = None
        self._mutations_in_flight = 0

    def _initial_state(self, kind: str, page_size: int) -> StreamState:
        return NotificationStreamState(kind=kind, page_size=page_size)

    @property
    def state(self) -> NotificationStreamState:
        return self._state  # type: ignore[no-any-return]

    @property
    def unread_count(self) -> int:
        return self.state.unread_count

    def _request_params(self) -> dict[str, str]:
        params = dict(self._params)
        # Lets the server shift its offset by the items removed locally.
        params["deletedDocCount"] = str(self.state.deleted_count)
        return params

    def set_filter(self, filter: str) -> bool:
        """Switch the server-side filter (``all``, ``like``, ...), resetting the feed."""
        self._filter = filter
        return self.reset(f"filter={filter}", params={"filter": filter})

    # ------------------------------------------------------------------
    # Local mutations
    # ------------------------------------------------------------------

    def _find(self, notification_id: str) -> Notification | None:
        for item in self.state.items:
            if self._key(item) == notification_id:
                return item  # type: ignore[no-any-return]
        return None

    async def mark_all_read(self) -> bool:
        """Optimistically mark everything read; roll back if the server refuses.

        Returns whether the server accepted the change. On failure the seen
        flags and the unread counter are restored and ``state.error`` is set.
        """
        before = self.state
        previous_seen = {
            item_key: item.seen for item in before.items if (item_key := self._key(item)) is not None
        }
        self._dispatch(
            SeenFlagsApplied(
                seen={item_key: True for item_key in previous_seen},
                unread_count=0,
                has_new=False,
            )
        )
        self._mutations_in_flight += 1
        try:
            await self._api.mark_all_notifications_read()
        except BlogSyncError as exc:
            _logger.debug("mark-all-read failed, rolling back: %s", exc)
            self._dispatch(
                SeenFlagsApplied(
                    seen=previous_seen,
                    unread_count=before.unread_count,
                    has_new=before.has_new,
                )
            )
            self._dispatch(ErrorReported(error=FetchError.from_exception(exc)))
            return False
        finally:
            self._mutations_in_flight -= 1
        return True

    def mark_read(self, notification_id: str) -> bool:
        """Mark one loaded notification read locally."""
        item = self._find(notification_id)
        if item is None or item.seen:
            return False
        self._dispatch(
            SeenFlagsApplied(
                seen={notification_id: True},
                unread_count=max(0, self.state.unread_count - 1),
            )
        )
        return True

    async def delete_item(self, notification_id: str) -> bool:
        """Delete a notification on the server and drop it from the window.

        The shorter window is not backfilled and ``has_more`` is not
        touched. Returns whether an item was removed.
        """
        if self._find(notification_id) is None:
            return False
        self._mutations_in_flight += 1
        try:
            await self._api.delete_notification(notification_id)
        except BlogSyncError as exc:
            self._dispatch(ErrorReported(error=FetchError.from_exception(exc)))
            return False
        finally:
            self._mutations_in_flight -= 1
        self._dispatch(ItemRemoved(item_id=notification_id))
        return True

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    async def poll_once(self) -> NotificationPollStatus | None:
        """Fetch the unread status and apply it unless a local mutation intervened."""
        epoch = self.state.counter_epoch
        busy_at_issue = self._mutations_in_flight > 0
        try:
            status = await self._api.poll_notifications()
        except BlogSyncError as exc:
            _logger.debug("Notification poll failed: %s", exc)
            return None

        if busy_at_issue or self._mutations_in_flight > 0:
            _logger.debug("Dropping notification poll overlapping a local mutation")
            return status
        try:
            self._dispatch(
                CountersPolled(
                    epoch=epoch,
                    unread_count=status.unread_count,
                    has_new=status.has_new,
                    newest_timestamp=status.newest_timestamp,
                )
            )
        except RaceDiscard as exc:
            _logger.debug("Dropping stale notification poll: %s", exc)
        return status

    async def refresh_counts(self) -> int | None:
        """Fetch the total notification count for the current filter."""
        try:
            total = await self._api.count_notifications(self._filter)
        except BlogSyncError as exc:
            self._dispatch(ErrorReported(error=FetchError.from_exception(exc)))
            return None
        self._dispatch(TotalCountSet(total_count=max(0, total)))
        return total

    # ------------------------------------------------------------------
    # Background polling
    # ------------------------------------------------------------------

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def start_polling(self) -> None:
        """Poll immediately, then every ``poll_interval`` seconds."""
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop_polling(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                _logger.warning("Notification poll failed unexpectedly", exc_info=True)
            await asyncio.sleep(self._poll_interval)
