"""Protocol definitions for the collaborators the controller drives."""

from __future__ import annotations

from typing import Protocol, Sequence

from shopview.query.types import CanonicalQuery, FacetKind, FacetOption, PageResult


class ResultFetcher(Protocol):
    """Fetches one page of results. Safe to call speculatively."""

    async def fetch_page(self, query: CanonicalQuery) -> PageResult:
        ...


class FacetFetcher(Protocol):
    """Fetches facet options of one kind (tags, authors, currencies)."""

    async def fetch_facets(self, kind: FacetKind, scope: str) -> Sequence[FacetOption]:
        ...
