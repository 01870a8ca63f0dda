"""Time-bounded cache of facet option lists.

The cache is advisory: reads degrade to an empty list and writes are
dropped on any storage or payload problem.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from shopview import logger
from shopview.facets.storage import SessionStorage
from shopview.query.types import FacetKind, FacetOption

CACHE_KEY_PREFIX = "shopview.facets.v1"


class _CachedOption(BaseModel):
    value: str
    count: int = Field(ge=0)
    label: Optional[str] = None


class _CachedFacets(BaseModel):
    expires_at: float
    options: list[_CachedOption] = Field(default_factory=list)


def cache_key(kind: FacetKind) -> str:
    return f"{CACHE_KEY_PREFIX}.{kind.value}"


def sort_for_display(options: Iterable[FacetOption]) -> list[FacetOption]:
    """Descending count, then ascending value."""
    return sorted(options, key=lambda option: (-option.count, option.value))


class FacetCache:
    """Facet options for one facet kind, stored with an absolute expiry."""

    def __init__(
        self,
        storage: SessionStorage,
        key: str,
        now: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self.key = key
        self._now = now

    @classmethod
    def for_kind(
        cls,
        storage: SessionStorage,
        kind: FacetKind,
        now: Callable[[], float] = time.time,
    ) -> "FacetCache":
        return cls(storage, cache_key(kind), now=now)

    def read(self) -> list[FacetOption]:
        try:
            raw = self._storage.get(self.key)
            if raw is None:
                return []
            payload = _CachedFacets.model_validate_json(raw)
        except Exception as exc:
            logger.debug(f"Facet cache '{self.key}' unreadable, treating as miss: {type(exc).__name__}: {exc}")
            return []
        if payload.expires_at <= self._now():
            logger.debug(f"Facet cache '{self.key}' expired")
            return []
        return sort_for_display(
            FacetOption(value=option.value, count=option.count, label=option.label)
            for option in payload.options
        )

    def write(self, options: Iterable[FacetOption], ttl: timedelta | float) -> None:
        seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
        try:
            payload = _CachedFacets(
                expires_at=self._now() + seconds,
                options=[
                    _CachedOption(value=option.value, count=option.count, label=option.label)
                    for option in options
                ],
            )
            self._storage.set(self.key, payload.model_dump_json())
        except Exception as exc:
            logger.debug(f"Facet cache '{self.key}' write dropped: {type(exc).__name__}: {exc}")
