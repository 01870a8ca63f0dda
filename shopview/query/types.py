"""Shared data structures for catalog queries and their results."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Iterable

from shopview.query.canonical import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_KEY,
    SortKey,
    canonicalize_currency,
    canonicalize_id_set,
    canonicalize_price,
    canonicalize_search,
    canonicalize_tag_set,
    parse_page_size,
    parse_positive_int,
    parse_sort_key,
)


@dataclass(frozen=True)
class CanonicalQuery:
    """Normalized description of the results to fetch.

    Instances are expected to hold canonical values only; use ``build`` to
    construct one from raw input. Equality is plain field equality, which is
    order-independent because tag and author sets are stored sorted.
    """

    search: str = ""
    tags: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    currency: str | None = None
    min_price_cents: int | None = None
    max_price_cents: int | None = None
    sort: SortKey = DEFAULT_SORT_KEY
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def build(
        cls,
        *,
        search: object = "",
        tags: Iterable[str] | None = None,
        authors: Iterable[str] | None = None,
        currency: object = None,
        min_price_cents: float | int | None = None,
        max_price_cents: float | int | None = None,
        sort: object = None,
        page: object = None,
        page_size: object = None,
    ) -> "CanonicalQuery":
        return cls(
            search=canonicalize_search(search),
            tags=canonicalize_tag_set(tags),
            authors=canonicalize_id_set(authors),
            currency=canonicalize_currency(currency),
            min_price_cents=canonicalize_price(min_price_cents),
            max_price_cents=canonicalize_price(max_price_cents),
            sort=parse_sort_key(sort),
            page=parse_positive_int(page, DEFAULT_PAGE),
            page_size=parse_page_size(page_size),
        )

    @property
    def has_price_conflict(self) -> bool:
        return (
            self.min_price_cents is not None
            and self.max_price_cents is not None
            and self.min_price_cents > self.max_price_cents
        )

    def with_page(self, page: int) -> "CanonicalQuery":
        return replace(self, page=page)

    def same_filters(self, other: "CanonicalQuery") -> bool:
        """Equality on every field except the page index."""
        return self.with_page(DEFAULT_PAGE) == other.with_page(DEFAULT_PAGE)

    def is_default(self) -> bool:
        return self == DEFAULT_QUERY

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_QUERY = CanonicalQuery()


@dataclass(frozen=True)
class SortRule:
    field: str
    direction: str


@dataclass(frozen=True)
class Product:
    """Catalog item as reported by the shop API."""

    id: str
    slug: str
    name: str
    price_cents: int
    currency: str
    description: str | None = None
    author_user_id: str | None = None
    author_display_name: str | None = None
    image_url: str | None = None
    tags: tuple[str, ...] = ()
    is_active: bool = True
    created_at: int = 0
    updated_at: int = 0


@dataclass(frozen=True)
class PageResult:
    """One page of results plus pagination metadata."""

    index: int
    size: int
    total_items: int
    total_pages: int
    has_prev: bool
    has_next: bool
    items: tuple[Any, ...] = ()
    sort: tuple[SortRule, ...] = ()

    @classmethod
    def empty(cls, page_size: int = DEFAULT_PAGE_SIZE) -> "PageResult":
        return cls(
            index=DEFAULT_PAGE,
            size=page_size,
            total_items=0,
            total_pages=0,
            has_prev=False,
            has_next=False,
        )


class FacetKind(str, Enum):
    TAGS = "tags"
    AUTHORS = "authors"
    CURRENCIES = "currencies"


@dataclass(frozen=True)
class FacetOption:
    """A filter value with its occurrence count; authors carry a label."""

    value: str
    count: int
    label: str | None = None

    @property
    def display(self) -> str:
        return self.label or self.value


@dataclass
class FacetState:
    """Facet lists currently on display, one per kind."""

    options: dict[FacetKind, tuple[FacetOption, ...]] = field(
        default_factory=lambda: {kind: () for kind in FacetKind}
    )

    def get(self, kind: FacetKind) -> tuple[FacetOption, ...]:
        return self.options.get(kind, ())

    def set(self, kind: FacetKind, options: Iterable[FacetOption]) -> None:
        self.options[kind] = tuple(options)
