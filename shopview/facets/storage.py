"""Session-scoped key/value storage used by the facet cache."""

from __future__ import annotations

from typing import Protocol


class SessionStorage(Protocol):
    """String store scoped to one browsing session. Failures may raise."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemorySessionStorage:
    """Default storage: lives as long as the process that created it."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()
