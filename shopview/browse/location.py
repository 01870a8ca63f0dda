"""Persisted-form transport: the shareable location and its history."""

from __future__ import annotations

from typing import Callable, Protocol

from shopview.query.codec import PersistedForm

Listener = Callable[[PersistedForm], None]
Unsubscribe = Callable[[], None]


class Location(Protocol):
    """Where the current persisted form lives (an address bar, a history stack).

    ``write`` must not notify subscribers; only changes the owner did not
    issue itself (links, back/forward) are reported.
    """

    def read(self) -> PersistedForm:
        ...

    def write(self, form: PersistedForm, *, replace: bool = False) -> None:
        ...

    def subscribe(self, listener: Listener) -> Unsubscribe:
        ...


class HistoryLocation(Location):
    """In-memory browser-style history of persisted forms."""

    def __init__(self, initial: PersistedForm | None = None) -> None:
        self._entries: list[PersistedForm] = [dict(initial or {})]
        self._index = 0
        self._listeners: list[Listener] = []
        self.writes: list[tuple[PersistedForm, bool]] = []

    def read(self) -> PersistedForm:
        return dict(self._entries[self._index])

    def write(self, form: PersistedForm, *, replace: bool = False) -> None:
        self.writes.append((dict(form), replace))
        if replace:
            self._entries[self._index] = dict(form)
            return
        del self._entries[self._index + 1:]
        self._entries.append(dict(form))
        self._index += 1

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate(self, form: PersistedForm) -> None:
        """External navigation (a followed link): push and notify."""
        del self._entries[self._index + 1:]
        self._entries.append(dict(form))
        self._index += 1
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

    @property
    def depth(self) -> int:
        return len(self._entries)

    def _notify(self) -> None:
        current = self.read()
        for listener in list(self._listeners):
            listener(current)
