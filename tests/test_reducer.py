from __future__ import annotations

import pytest

from blogsync.exceptions import FetchError, FetchErrorKind, RaceDiscard
from blogsync.models.notification import Notification
from blogsync.models.stream import NotificationStreamState, StreamState
from blogsync.state.events import (
    CountersPolled,
    ItemRemoved,
    PageFailed,
    PageLoaded,
    PageRequested,
    ResetRequested,
    TotalCountSet,
)
from blogsync.state.reducer import reduce


def _blogs(*ids: str) -> tuple[dict[str, str], ...]:
    return tuple({"_id": blog_id} for blog_id in ids)


def _loaded_state() -> StreamState:
    state = reduce(StreamState(kind="search-blogs", page_size=2), ResetRequested(signature="q=x", token=1))
    state = reduce(state, PageRequested(page=1, token=1))
    return reduce(state, PageLoaded(page=1, token=1, items=_blogs("a", "b"), returned_count=2))


def test_page_one_replaces_and_later_pages_append() -> None:
    state = _loaded_state()
    assert [item["_id"] for item in state.items] == ["a", "b"]
    assert state.has_more is True
    assert state.loading is False

    state = reduce(state, PageLoaded(page=2, token=1, items=_blogs("c"), returned_count=1))
    assert [item["_id"] for item in state.items] == ["a", "b", "c"]
    assert state.current_page == 2
    assert state.has_more is False


def test_append_skips_items_already_loaded() -> None:
    state = reduce(_loaded_state(), PageLoaded(page=2, token=1, items=_blogs("b", "c"), returned_count=2))
    assert [item["_id"] for item in state.items] == ["a", "b", "c"]
    # The heuristic still sees a full page.
    assert state.has_more is True


def test_stale_token_leaves_state_untouched() -> None:
    state = reduce(_loaded_state(), ResetRequested(signature="q=y", token=2))
    with pytest.raises(RaceDiscard):
        reduce(state, PageLoaded(page=1, token=1, items=_blogs("z"), returned_count=1))
    assert state.items == ()
    assert state.filter_signature == "q=y"


def test_failure_keeps_items_and_records_error() -> None:
    state = reduce(_loaded_state(), PageRequested(page=2, token=1))
    assert state.loading is True

    error = FetchError("gone", kind=FetchErrorKind.NOT_FOUND, status_code=404)
    state = reduce(state, PageFailed(page=2, token=1, error=error))

    assert len(state.items) == 2
    assert state.loading is False
    assert state.error == error


def test_removing_unknown_item_returns_same_snapshot() -> None:
    state = _loaded_state()
    assert reduce(state, ItemRemoved(item_id="missing")) is state


def test_notification_actions_require_notification_state() -> None:
    with pytest.raises(TypeError):
        reduce(_loaded_state(), TotalCountSet(total_count=3))


def test_counter_poll_with_old_epoch_is_discarded() -> None:
    state = NotificationStreamState(kind="notifications", page_size=10, counter_epoch=2)
    with pytest.raises(RaceDiscard):
        reduce(state, CountersPolled(epoch=1, unread_count=5, has_new=True))

    state = reduce(state, CountersPolled(epoch=2, unread_count=5, has_new=True))
    assert state.unread_count == 5
    assert state.has_new is True


def test_removing_unread_notification_updates_counters() -> None:
    unread = Notification.model_validate({"_id": "n1", "type": "like", "seen": False})
    read = Notification.model_validate({"_id": "n2", "type": "comment", "seen": True})
    state = NotificationStreamState(
        kind="notifications",
        page_size=10,
        items=(unread, read),
        unread_count=1,
        total_count=2,
    )

    state = reduce(state, ItemRemoved(item_id="n1"))
    assert state.unread_count == 0
    assert state.total_count == 1
    assert state.deleted_count == 1
    assert state.counter_epoch == 1

    state = reduce(state, ItemRemoved(item_id="n2"))
    assert state.unread_count == 0
    assert state.deleted_count == 2
    assert state.counter_epoch == 1
