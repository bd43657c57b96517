from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from blogsync.exceptions import FilterValidationError
from blogsync.location import MemoryLocation
from blogsync.models.stream import PageData
from blogsync.query import QuerySyncer
from blogsync.stream import PaginatedStream


class _FakeFetcher:
    def __init__(self) -> None:
        self.calls: list[dict[str, str]] = []

    async def fetch_page(self, kind: str, page: int, page_size: int, params: Mapping[str, str]) -> PageData:
        self.calls.append(dict(params))
        return PageData(items=({"_id": f"{params.get('q', '')}-{page}"},))


def _setup(url: str) -> tuple[MemoryLocation, PaginatedStream[Any], QuerySyncer]:
    location = MemoryLocation(url)
    stream: PaginatedStream[Any] = PaginatedStream("search-blogs", _FakeFetcher(), page_size=9)
    syncer = QuerySyncer(location, [stream])
    syncer.start()
    return location, stream, syncer


def test_start_adopts_filters_from_url() -> None:
    _location, stream, syncer = _setup("/search?tag=ai&q=test")

    assert syncer.signature == "q=test&tag=ai"
    assert stream.state.filter_signature == "q=test&tag=ai"
    assert stream.params == {"q": "test", "tag": "ai"}


def test_filter_edit_replaces_url_without_growing_history() -> None:
    location, stream, syncer = _setup("/search?q=test")

    assert syncer.set_filters(q="tes") is True
    assert syncer.set_filters(q="te") is True

    assert location.get_location().url == "/search?q=te"
    assert location.history_length == 1
    assert stream.state.filter_signature == "q=te"


def test_own_url_write_does_not_reset_again() -> None:
    location, stream, syncer = _setup("/search?q=test")
    syncer.set_filters(tag="ai")
    token = stream.state.last_sequence_token

    # The location echoes the replace-navigation to subscribers.
    assert syncer.handle_location_change() is False
    assert stream.state.last_sequence_token == token
    assert location.get_location().query == "q=test&tag=ai"


def test_unchanged_filters_are_a_no_op() -> None:
    location, stream, syncer = _setup("/search?q=test")
    token = stream.state.last_sequence_token

    assert syncer.set_filters({"q": " test "}) is False
    assert stream.state.last_sequence_token == token
    assert location.history_length == 1


def test_invalid_filters_are_rejected_without_touching_url() -> None:
    location, _stream, syncer = _setup("/search?q=test")

    with pytest.raises(FilterValidationError):
        syncer.set_filters(category="gardening")
    assert location.get_location().query == "q=test"


def test_back_and_forward_reset_the_stream() -> None:
    location, stream, syncer = _setup("/search?q=python")
    location.navigate("/search?q=rust")
    assert syncer.signature == "q=rust"
    assert stream.state.filter_signature == "q=rust"

    syncer.set_filters(q="rust async")
    assert location.get_location().query == "q=rust+async"

    location.back()
    assert syncer.signature == "q=python"
    assert stream.state.filter_signature == "q=python"

    location.forward()
    assert syncer.signature == "q=rust+async"
    assert stream.params == {"q": "rust async"}


def test_stopped_syncer_ignores_navigation() -> None:
    location, stream, syncer = _setup("/search?q=python")
    syncer.stop()

    location.navigate("/search?q=rust")

    assert syncer.signature == "q=python"
    assert stream.state.filter_signature == "q=python"


@pytest.mark.asyncio
async def test_attached_stream_follows_current_filters() -> None:
    location, _stream, syncer = _setup("/search?q=python")
    fetcher = _FakeFetcher()
    users: PaginatedStream[Any] = PaginatedStream("search-users", fetcher, page_size=10)

    syncer.attach(users)
    await users.load_page(1)

    assert users.state.filter_signature == "q=python"
    assert fetcher.calls == [{"q": "python"}]
    assert location.history_length == 1
