"""Single reducer for paginated stream state.

This is the only place stream snapshots are derived. Given the same
sequence of actions it produces the same snapshots. Actions carrying a
superseded sequence token raise :class:`~blogsync.exceptions.RaceDiscard`
and leave the state untouched.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from blogsync.models.stream import NotificationStreamState, StreamState
from blogsync.state.events import (
    CountersPolled,
    ErrorReported,
    ItemRemoved,
    PageFailed,
    PageLoaded,
    PageRequested,
    ResetRequested,
    SeenFlagsApplied,
    StreamAction,
    TotalCountSet,
)
from blogsync.state.policy import default_item_key, ensure_current_token, has_more_after

S = TypeVar("S", bound=StreamState)
KeyFn = Callable[[Any], str | None]


def _merge_items(existing: tuple[Any, ...], incoming: tuple[Any, ...], key: KeyFn) -> tuple[Any, ...]:
    """Append *incoming* to *existing*, skipping items already present by key."""
    seen: set[str] = set()
    for item in existing:
        item_key = key(item)
        if item_key is not None:
            seen.add(item_key)
    merged = list(existing)
    for item in incoming:
        item_key = key(item)
        if item_key is not None:
            if item_key in seen:
                continue
            seen.add(item_key)
        merged.append(item)
    return tuple(merged)


def _require_notifications(state: StreamState, action: StreamAction) -> NotificationStreamState:
    if not isinstance(state, NotificationStreamState):
        raise TypeError(f"{type(action).__name__} requires a notification stream")
    return state


def _on_reset(state: S, action: ResetRequested, key: KeyFn) -> S:
    update: dict[str, Any] = {
        "items": (),
        "current_page": 0,
        "has_more": True,
        "loading": False,
        "error": None,
        "filter_signature": action.signature,
        "last_sequence_token": action.token,
        "pending_pages": frozenset(),
    }
    if isinstance(state, NotificationStreamState):
        update["deleted_count"] = 0
    return state.model_copy(update=update)


def _on_page_requested(state: S, action: PageRequested, key: KeyFn) -> S:
    ensure_current_token(state.last_sequence_token, action.token)
    return state.model_copy(
        update={
            "pending_pages": state.pending_pages | {action.page},
            "loading": True,
            "error": None,
        }
    )


def _insert_items(
    existing: tuple[Any, ...], incoming: tuple[Any, ...], index: int, key: KeyFn
) -> tuple[Any, ...]:
    """Insert *incoming* at *index*, skipping items already present by key."""
    fresh = _merge_items(existing, incoming, key)[len(existing):]
    return existing[:index] + fresh + existing[index:]


def _on_page_loaded(state: S, action: PageLoaded, key: KeyFn) -> S:
    ensure_current_token(state.last_sequence_token, action.token)
    pending = state.pending_pages - {action.page}
    update: dict[str, Any] = {
        "pending_pages": pending,
        "loading": bool(pending),
        "error": None,
    }
    if action.page > state.current_page:
        update.update(
            items=_merge_items(state.items, action.items, key),
            current_page=action.page,
            has_more=has_more_after(action.returned_count, state.page_size),
        )
    else:
        # A lower page landing after a higher one: slot it in by position.
        index = min(len(state.items), (action.page - 1) * state.page_size)
        update["items"] = _insert_items(state.items, action.items, index, key)
    return state.model_copy(update=update)


def _on_page_failed(state: S, action: PageFailed, key: KeyFn) -> S:
    ensure_current_token(state.last_sequence_token, action.token)
    pending = state.pending_pages - {action.page}
    return state.model_copy(
        update={
            "pending_pages": pending,
            "loading": bool(pending),
            "error": action.error,
        }
    )


def _on_error_reported(state: S, action: ErrorReported, key: KeyFn) -> S:
    return state.model_copy(update={"error": action.error})


def _on_item_removed(state: S, action: ItemRemoved, key: KeyFn) -> S:
    remaining: list[Any] = []
    removed: Any = None
    for item in state.items:
        if removed is None and key(item) == action.item_id:
            removed = item
            continue
        remaining.append(item)
    if removed is None:
        return state

    update: dict[str, Any] = {"items": tuple(remaining)}
    if isinstance(state, NotificationStreamState):
        was_unread = not getattr(removed, "seen", True)
        update.update(
            unread_count=max(0, state.unread_count - 1) if was_unread else state.unread_count,
            total_count=max(0, state.total_count - 1),
            deleted_count=state.deleted_count + 1,
            counter_epoch=state.counter_epoch + (1 if was_unread else 0),
        )
    # has_more is untouched; the window may shrink.
    return state.model_copy(update=update)


def _on_seen_flags_applied(state: S, action: SeenFlagsApplied, key: KeyFn) -> S:
    notifications = _require_notifications(state, action)
    items = tuple(
        item.with_seen(action.seen[item_key])
        if (item_key := key(item)) is not None and item_key in action.seen
        else item
        for item in notifications.items
    )
    return notifications.model_copy(  # type: ignore[return-value]
        update={
            "items": items,
            "unread_count": action.unread_count,
            "has_new": (
                action.has_new
                if action.has_new is not None
                else action.unread_count > 0 and notifications.has_new
            ),
            "counter_epoch": notifications.counter_epoch + 1,
        }
    )


def _on_counters_polled(state: S, action: CountersPolled, key: KeyFn) -> S:
    notifications = _require_notifications(state, action)
    ensure_current_token(notifications.counter_epoch, action.epoch)
    update: dict[str, Any] = {"has_new": action.has_new}
    if action.unread_count is not None:
        update["unread_count"] = action.unread_count
    if action.newest_timestamp is not None:
        update["newest_timestamp"] = action.newest_timestamp
    return notifications.model_copy(update=update)  # type: ignore[return-value]


def _on_total_count_set(state: S, action: TotalCountSet, key: KeyFn) -> S:
    notifications = _require_notifications(state, action)
    return notifications.model_copy(update={"total_count": action.total_count})  # type: ignore[return-value]


_TRANSITIONS: dict[type[StreamAction], Callable[[Any, Any, KeyFn], Any]] = {
    ResetRequested: _on_reset,
    PageRequested: _on_page_requested,
    PageLoaded: _on_page_loaded,
    PageFailed: _on_page_failed,
    ErrorReported: _on_error_reported,
    ItemRemoved: _on_item_removed,
    SeenFlagsApplied: _on_seen_flags_applied,
    CountersPolled: _on_counters_polled,
    TotalCountSet: _on_total_count_set,
}


def reduce(state: S, action: StreamAction, *, key: KeyFn = default_item_key) -> S:
    """Apply *action* to *state* and return the new snapshot."""
    handler = _TRANSITIONS.get(type(action))
    if handler is None:
        raise TypeError(f"unsupported stream action: {type(action).__name__}")
    result: S = handler(state, action, key)
    return result
