"""Two-way binding between a filter set and the URL query string."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from blogsync.location import Location, LocationState
from blogsync.models.filters import FilterSet, deserialize_filters
from blogsync.stream import PaginatedStream

_logger = logging.getLogger(__name__)


class QuerySyncer:
    """Keep a :class:`FilterSet`, the URL and dependent streams consistent.

    Filter edits write the URL with *replace* navigation so typing into a
    search box does not grow history. External navigation (back/forward)
    is read back into filters and resets any stream whose signature
    differs. The echo of the syncer's own URL writes is recognised by
    signature and suppressed.
    """

    def __init__(
        self,
        location: Location,
        streams: Iterable[PaginatedStream[Any]] = (),
        *,
        params_for: Callable[[FilterSet], Mapping[str, str]] | None = None,
    ) -> None:
        self._location = location
        self._streams: list[PaginatedStream[Any]] = list(streams)
        self._params_for = params_for or (lambda filters: filters.as_params())
        self._filters = FilterSet()
        self._last_written: str | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def signature(self) -> str:
        return self._filters.signature

    def attach(self, stream: PaginatedStream[Any]) -> None:
        self._streams.append(stream)
        self._reset_streams()

    def start(self) -> FilterSet:
        """Adopt the filters in the current URL and follow later location changes."""
        self._filters = deserialize_filters(self._location.get_location().query)
        self._reset_streams()
        subscribe = getattr(self._location, "subscribe", None)
        if self._unsubscribe is None and callable(subscribe):
            self._unsubscribe = subscribe(lambda _state: self.handle_location_change())
        return self._filters

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def set_filters(self, filters: FilterSet | Mapping[str, Any] | None = None, **changes: Any) -> bool:
        """Replace or patch the active filters.

        Raises :class:`~blogsync.exceptions.FilterValidationError` for
        malformed input. Returns whether the signature changed.
        """
        if filters is None:
            new_filters = self._filters.replace(**changes)
        else:
            base = filters if isinstance(filters, FilterSet) else FilterSet.from_mapping(filters)
            new_filters = base.replace(**changes) if changes else base

        if new_filters.signature == self._filters.signature:
            return False

        self._filters = new_filters
        self._write_url(new_filters)
        self._reset_streams()
        return True

    def handle_location_change(self) -> bool:
        """React to a location change; returns whether filters were adopted."""
        filters = deserialize_filters(self._location.get_location().query)
        signature = filters.signature
        if signature == self._filters.signature or signature == self._last_written:
            return False

        _logger.debug("Adopting filters from navigation: %r", signature)
        self._filters = filters
        self._last_written = None
        self._reset_streams()
        return True

    def _write_url(self, filters: FilterSet) -> None:
        current = self._location.get_location()
        target = LocationState(path=current.path, query=filters.signature)
        # Recorded before navigating: the location may report the change synchronously.
        self._last_written = filters.signature
        self._location.navigate(target.url, replace=True)

    def _reset_streams(self) -> None:
        signature = self._filters.signature
        params = self._params_for(self._filters)
        for stream in self._streams:
            if stream.state.filter_signature != signature:
                stream.reset(signature, params=params)
