"""Editable, not yet committed query state."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from shopview.query.canonical import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_KEY,
    canonicalize_price,
)
from shopview.query.types import CanonicalQuery

MIN_PRICE_MALFORMED = "Minimum price must be a number"
MAX_PRICE_MALFORMED = "Maximum price must be a number"
PRICE_RANGE_INVERTED = "Minimum price cannot exceed maximum price"


@dataclass
class DraftQuery:
    """Free-form filter input as the user types it.

    Prices are entered in major currency units (``"12.50"``) and may be empty
    or unparsable until the draft is committed.
    """

    search: str = ""
    tags: list[str] = field(default_factory=list)
    authors: list[str] = field(default_factory=list)
    currency: str = ""
    min_price: str = ""
    max_price: str = ""
    sort: str = DEFAULT_SORT_KEY.value
    page: int | str = DEFAULT_PAGE
    page_size: int | str = DEFAULT_PAGE_SIZE

    def toggle_tag(self, tag: str) -> None:
        _toggle(self.tags, tag.strip().lower())

    def toggle_author(self, author_id: str) -> None:
        _toggle(self.authors, author_id.strip())


def _toggle(values: list[str], value: str) -> None:
    if not value:
        return
    if value in values:
        values[:] = [item for item in values if item != value]
    else:
        values.append(value)


def parse_price_input(raw: str | None) -> tuple[int | None, bool]:
    """Return ``(cents, malformed)`` for a major-unit price field."""
    text = (raw or "").strip()
    if not text:
        return None, False
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None, True
    if not amount.is_finite():
        return None, True
    return canonicalize_price(float(amount * 100)), False


def format_price_input(cents: int | None) -> str:
    if cents is None:
        return ""
    return f"{Decimal(cents) / 100:.2f}"


def draft_errors(draft: DraftQuery) -> list[str]:
    min_cents, min_bad = parse_price_input(draft.min_price)
    max_cents, max_bad = parse_price_input(draft.max_price)
    errors: list[str] = []
    if min_bad:
        errors.append(MIN_PRICE_MALFORMED)
    if max_bad:
        errors.append(MAX_PRICE_MALFORMED)
    if min_cents is not None and max_cents is not None and min_cents > max_cents:
        errors.append(PRICE_RANGE_INVERTED)
    return errors


def canonicalize_draft(draft: DraftQuery) -> CanonicalQuery:
    """Canonical form of the draft. Malformed prices become "no bound"."""
    min_cents, _ = parse_price_input(draft.min_price)
    max_cents, _ = parse_price_input(draft.max_price)
    return CanonicalQuery.build(
        search=draft.search,
        tags=draft.tags,
        authors=draft.authors,
        currency=draft.currency,
        min_price_cents=min_cents,
        max_price_cents=max_cents,
        sort=draft.sort,
        page=draft.page,
        page_size=draft.page_size,
    )


def draft_from_query(query: CanonicalQuery) -> DraftQuery:
    return DraftQuery(
        search=query.search,
        tags=list(query.tags),
        authors=list(query.authors),
        currency=query.currency or "",
        min_price=format_price_input(query.min_price_cents),
        max_price=format_price_input(query.max_price_cents),
        sort=query.sort.value,
        page=query.page,
        page_size=query.page_size,
    )
