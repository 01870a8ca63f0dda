"""Reconciles the persisted, draft and applied catalog queries.

The controller is the single writer of the draft and applied queries. Every
result fetch is tagged with a generation number at issue time and its outcome
is applied only while that generation is still the latest one; facet fetches
follow the same rule with their own counter. Superseded fetches are never
cancelled, their responses are simply dropped.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence

from shopview import logger
from shopview.api.errors import TransportError, describe_failure
from shopview.api.protocols import FacetFetcher, ResultFetcher
from shopview.browse.location import Location, Unsubscribe
from shopview.config import BrowseConfig
from shopview.facets.cache import FacetCache, sort_for_display
from shopview.facets.storage import SessionStorage
from shopview.facets.views import filter_facet_options, page_window
from shopview.query.codec import PersistedForm, decode, encode
from shopview.query.draft import (
    DraftQuery,
    canonicalize_draft,
    draft_errors,
    draft_from_query,
)
from shopview.query.types import (
    DEFAULT_QUERY,
    CanonicalQuery,
    FacetKind,
    FacetOption,
    FacetState,
    PageResult,
)


class FetchStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FAILED = "failed"


class QueryStateController:
    """Owns draft and applied query state and drives result/facet fetches.

    Commands (``apply``, ``reset``, ``go_to_page``, ``retry``) update state
    synchronously and schedule the fetch on the running event loop; use
    ``settle()`` to wait for outstanding fetches.
    """

    def __init__(
        self,
        location: Location,
        results: ResultFetcher,
        facets: FacetFetcher,
        storage: SessionStorage,
        *,
        settings: BrowseConfig | None = None,
        facet_kinds: Sequence[FacetKind] = tuple(FacetKind),
        now: Callable[[], float] = time.time,
    ) -> None:
        self._location = location
        self._results = results
        self._facet_fetcher = facets
        self._settings = settings or BrowseConfig()
        self._facet_kinds = tuple(facet_kinds)
        self._caches = {kind: FacetCache.for_kind(storage, kind, now=now) for kind in self._facet_kinds}

        self._applied: CanonicalQuery = DEFAULT_QUERY
        self._draft: DraftQuery = draft_from_query(DEFAULT_QUERY)
        self._page: Optional[PageResult] = None
        self._error: Optional[str] = None
        self._result_status = FetchStatus.IDLE
        self._facet_status = FetchStatus.IDLE
        self._facets = FacetState()

        self._result_generation = 0
        self._facet_generation = 0
        self._tasks: set[asyncio.Task[Any]] = set()
        self._unsubscribe: Optional[Unsubscribe] = None
        self._started = False
        self._disposed = False

    # Lifecycle

    def start(self) -> None:
        """Seed state from the location and the facet cache, then fetch."""
        if self._started or self._disposed:
            return
        self._started = True
        self._applied = decode(self._location.read())
        self._draft = draft_from_query(self._applied)
        for kind, cache in self._caches.items():
            cached = cache.read()
            if cached:
                logger.debug(f"Seeded {len(cached)} {kind.value} facet option(s) from cache")
            self._facets.set(kind, cached)
        self._unsubscribe = self._location.subscribe(self._on_location_change)
        self._write_location(in_place=True)
        self._issue_result_fetch()
        self.refresh_facets()

    def dispose(self) -> None:
        """Stop reacting to the location and ignore any late completions."""
        self._disposed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def settle(self) -> None:
        """Wait until no fetch scheduled by this controller is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # State

    @property
    def applied(self) -> CanonicalQuery:
        return self._applied

    @property
    def draft(self) -> DraftQuery:
        return replace(self._draft, tags=list(self._draft.tags), authors=list(self._draft.authors))

    @property
    def page_result(self) -> Optional[PageResult]:
        return self._page

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def result_status(self) -> FetchStatus:
        return self._result_status

    @property
    def facet_status(self) -> FetchStatus:
        return self._facet_status

    @property
    def is_loading(self) -> bool:
        return self._result_status is FetchStatus.FETCHING

    @property
    def is_loading_facets(self) -> bool:
        return self._facet_status is FetchStatus.FETCHING

    @property
    def draft_errors(self) -> list[str]:
        return draft_errors(self._draft)

    @property
    def is_draft_invalid(self) -> bool:
        return bool(self.draft_errors)

    @property
    def is_dirty(self) -> bool:
        return not canonicalize_draft(self._draft).same_filters(self._applied)

    @property
    def total_pages(self) -> int:
        return self._page.total_pages if self._page is not None else 0

    @property
    def generation(self) -> int:
        return self._result_generation

    @property
    def facet_generation(self) -> int:
        return self._facet_generation

    @property
    def disposed(self) -> bool:
        return self._disposed

    def facets(self, kind: FacetKind) -> tuple[FacetOption, ...]:
        return self._facets.get(kind)

    def visible_facets(self, kind: FacetKind, text: str | None = None) -> list[FacetOption]:
        return filter_facet_options(self._facets.get(kind), text)

    def page_buttons(self) -> list[int]:
        return page_window(self._applied.page, self.total_pages, self._settings.page_window)

    # Draft editing (never fetches)

    def set_draft(self, draft: DraftQuery) -> None:
        self._draft = replace(draft, tags=list(draft.tags), authors=list(draft.authors))

    def update_draft(self, **changes: Any) -> None:
        self.set_draft(replace(self._draft, **changes))

    def toggle_draft_tag(self, tag: str) -> None:
        self._draft.toggle_tag(tag)

    def toggle_draft_author(self, author_id: str) -> None:
        self._draft.toggle_author(author_id)

    # Commands

    def apply(self) -> bool:
        """Commit the draft. Returns True when a new query was applied."""
        if self._disposed:
            return False
        errors = self.draft_errors
        if errors:
            logger.debug(f"Apply blocked by invalid draft: {'; '.join(errors)}")
            return False
        committed = canonicalize_draft(self._draft).with_page(1)
        self._draft = draft_from_query(committed)
        if committed == self._applied:
            return False
        self._set_applied(committed)
        return True

    def reset(self) -> bool:
        """Return draft and applied query to the defaults."""
        if self._disposed:
            return False
        self._draft = draft_from_query(DEFAULT_QUERY)
        if self._applied == DEFAULT_QUERY:
            return False
        self._set_applied(DEFAULT_QUERY)
        return True

    def go_to_page(self, page: int) -> bool:
        """Move the applied query to ``page``, leaving the draft untouched.

        With a known page count the page must lie within it and differ from
        the current one. With no known count (nothing loaded yet, or a total
        of 0) any positive page is accepted and fetched, the current page
        included.
        """
        if self._disposed or isinstance(page, bool) or not isinstance(page, int):
            return False
        total = self.total_pages
        if page < 1 or (total > 0 and page > total):
            return False
        if total > 0 and page == self._applied.page:
            return False
        self._set_applied(self._applied.with_page(page))
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self._applied.page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self._applied.page - 1)

    def retry(self) -> bool:
        """Re-issue the fetch for the applied query (user triggered)."""
        if self._disposed or not self._started:
            return False
        self._issue_result_fetch()
        return True

    def refresh_facets(self) -> None:
        if self._disposed or not self._facet_kinds:
            return
        self._facet_generation += 1
        generation = self._facet_generation
        self._facet_status = FetchStatus.FETCHING
        self._spawn(self._run_facet_fetch(generation))

    # Reconciliation

    def _on_location_change(self, form: PersistedForm) -> None:
        if self._disposed:
            return
        observed = decode(form)
        if observed == self._applied:
            return
        logger.debug(f"Location changed externally: {form}")
        self._applied = observed
        self._draft = draft_from_query(observed)
        self._write_location(in_place=True)
        self._issue_result_fetch()

    def _set_applied(self, query: CanonicalQuery) -> None:
        self._applied = query
        self._write_location(in_place=False)
        self._issue_result_fetch()

    def _write_location(self, *, in_place: bool) -> None:
        form = encode(self._applied)
        if form == self._location.read():
            return
        logger.debug(f"Writing location ({'replace' if in_place else 'push'}): {form}")
        self._location.write(form, replace=in_place)

    # Fetching

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._result_generation

    def _is_current_facets(self, generation: int) -> bool:
        return not self._disposed and generation == self._facet_generation

    def _issue_result_fetch(self) -> None:
        self._result_generation += 1
        generation = self._result_generation
        self._result_status = FetchStatus.FETCHING
        logger.debug(f"Fetching results (generation {generation}): {encode(self._applied)}")
        self._spawn(self._run_result_fetch(generation, self._applied))

    async def _with_timeout(self, awaitable: Awaitable[Any]) -> Any:
        timeout = self._settings.fetch_timeout_seconds
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"timed out after {timeout:g}s") from exc

    async def _run_result_fetch(self, generation: int, query: CanonicalQuery) -> None:
        try:
            page = await self._with_timeout(self._results.fetch_page(query))
        except Exception as exc:
            if not self._is_current(generation):
                logger.debug(f"Discarding stale result failure (generation {generation})")
                return
            self._error = describe_failure(exc)
            self._result_status = FetchStatus.FAILED
            logger.warning(f"Result fetch failed ({type(exc).__name__}): {exc}")
            return
        if not self._is_current(generation):
            logger.debug(f"Discarding stale result page (generation {generation})")
            return
        self._page = page
        self._error = None
        self._result_status = FetchStatus.IDLE

    async def _run_facet_fetch(self, generation: int) -> None:
        scope = self._settings.facet_scope
        outcomes = await asyncio.gather(
            *(self._with_timeout(self._facet_fetcher.fetch_facets(kind, scope)) for kind in self._facet_kinds),
            return_exceptions=True,
        )
        if not self._is_current_facets(generation):
            logger.debug(f"Discarding stale facets (generation {generation})")
            return
        failed = False
        for kind, outcome in zip(self._facet_kinds, outcomes):
            if isinstance(outcome, BaseException):
                failed = True
                logger.warning(
                    f"{kind.value.title()} facets unavailable ({type(outcome).__name__}); "
                    f"keeping {len(self._facets.get(kind))} displayed option(s)"
                )
                continue
            options = sort_for_display(outcome)
            self._facets.set(kind, options)
            self._caches[kind].write(options, self._settings.facet_cache_ttl_seconds)
        self._facet_status = FetchStatus.FAILED if failed else FetchStatus.IDLE
