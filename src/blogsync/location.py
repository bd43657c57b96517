"""Location collaborator: current path/query and navigation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)


class LocationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = "/"
    query: str = ""

    @classmethod
    def parse(cls, url: str) -> LocationState:
        parts = urlsplit(url)
        return cls(path=parts.path or "/", query=parts.query)

    @property
    def url(self) -> str:
        return f"{self.path}?{self.query}" if self.query else self.path


class Location(Protocol):
    def get_location(self) -> LocationState:
        ...

    def navigate(self, url: str, *, replace: bool = False) -> None:
        ...


LocationListener = Callable[[LocationState], None]


class MemoryLocation:
    """In-memory history with push/replace navigation and back/forward.

    Every location change, including the echo of :meth:`navigate`, is
    delivered to subscribers, the way browser routers report them.
    """

    def __init__(self, url: str = "/") -> None:
        self._entries: list[LocationState] = [LocationState.parse(url)]
        self._index = 0
        self._listeners: list[LocationListener] = []

    def get_location(self) -> LocationState:
        return self._entries[self._index]

    @property
    def history_length(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate(self, url: str, *, replace: bool = False) -> None:
        state = LocationState.parse(url)
        if replace:
            self._entries[self._index] = state
        else:
            del self._entries[self._index + 1 :]
            self._entries.append(state)
            self._index += 1
        _logger.debug("navigate %s replace=%s", state.url, replace)
        self._notify()

    def back(self) -> bool:
        if self._index == 0:
            return False
        self._index -= 1
        self._notify()
        return True

    def forward(self) -> bool:
        if self._index >= len(self._entries) - 1:
            return False
        self._index += 1
        self._notify()
        return True

    def _notify(self) -> None:
        current = self.get_location()
        for listener in list(self._listeners):
            listener(current)
