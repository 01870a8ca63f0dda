"""Mapping between canonical queries and their flat, shareable form.

``decode`` is lenient (missing, malformed or unknown keys fall back to
defaults) while ``encode`` is minimal (keys equal to their default are
omitted). Together they make ``decode(encode(q)) == q`` and keep
``encode(decode(form))`` a fixed point for every encoded form.
"""

from __future__ import annotations

from typing import Dict, Mapping, Sequence, Union

from yarl import URL

from shopview import logger
from shopview.query.canonical import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_KEY,
    canonicalize_price,
    parse_number,
)
from shopview.query.types import CanonicalQuery

PersistedForm = Dict[str, str]
RawForm = Mapping[str, Union[str, Sequence[str]]]

SEARCH_KEY = "search"
TAGS_KEY = "tags"
AUTHORS_KEY = "authors"
CURRENCY_KEY = "currency"
MIN_PRICE_KEY = "min_price"
MAX_PRICE_KEY = "max_price"
SORT_KEY = "sort"
PAGE_KEY = "page"
PAGE_SIZE_KEY = "page_size"

FORM_KEYS: tuple[str, ...] = (
    SEARCH_KEY,
    TAGS_KEY,
    AUTHORS_KEY,
    CURRENCY_KEY,
    MIN_PRICE_KEY,
    MAX_PRICE_KEY,
    SORT_KEY,
    PAGE_KEY,
    PAGE_SIZE_KEY,
)
LIST_SEPARATOR = ","


def _value(form: RawForm, key: str) -> str | None:
    raw = form.get(key)
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    # Repeated keys (tags=a&tags=b) arrive as sequences.
    return LIST_SEPARATOR.join(str(item) for item in raw)


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return raw.split(LIST_SEPARATOR)


def _price(raw: str | None) -> int | None:
    return canonicalize_price(parse_number(raw))


def decode(form: RawForm | None) -> CanonicalQuery:
    """Decode a persisted form into a canonical query. Never raises."""
    form = form or {}
    min_price = _price(_value(form, MIN_PRICE_KEY))
    max_price = _price(_value(form, MAX_PRICE_KEY))
    if min_price is not None and max_price is not None and min_price > max_price:
        logger.debug(
            f"Ignoring inverted price range in persisted form (min={min_price}, max={max_price})"
        )
        min_price = max_price = None
    return CanonicalQuery.build(
        search=_value(form, SEARCH_KEY),
        tags=_split(_value(form, TAGS_KEY)),
        authors=_split(_value(form, AUTHORS_KEY)),
        currency=_value(form, CURRENCY_KEY),
        min_price_cents=min_price,
        max_price_cents=max_price,
        sort=_value(form, SORT_KEY),
        page=_value(form, PAGE_KEY),
        page_size=_value(form, PAGE_SIZE_KEY),
    )


def encode(query: CanonicalQuery) -> PersistedForm:
    """Encode a canonical query, omitting every key that holds its default."""
    form: PersistedForm = {}
    if query.search:
        form[SEARCH_KEY] = query.search
    if query.tags:
        form[TAGS_KEY] = LIST_SEPARATOR.join(query.tags)
    if query.authors:
        form[AUTHORS_KEY] = LIST_SEPARATOR.join(query.authors)
    if query.currency:
        form[CURRENCY_KEY] = query.currency
    if query.min_price_cents is not None:
        form[MIN_PRICE_KEY] = str(query.min_price_cents)
    if query.max_price_cents is not None:
        form[MAX_PRICE_KEY] = str(query.max_price_cents)
    if query.sort != DEFAULT_SORT_KEY:
        form[SORT_KEY] = query.sort.value
    if query.page != DEFAULT_PAGE:
        form[PAGE_KEY] = str(query.page)
    if query.page_size != DEFAULT_PAGE_SIZE:
        form[PAGE_SIZE_KEY] = str(query.page_size)
    return form


def is_url(target: str) -> bool:
    return target.startswith("http://") or target.startswith("https://")


def form_from_link(text: str) -> PersistedForm:
    """Read a persisted form from a full URL or a bare query string."""
    text = (text or "").strip()
    if not text:
        return {}
    url = URL(text) if is_url(text) else URL("?" + text.lstrip("?"))
    form: PersistedForm = {}
    for key in url.query.keys():
        if key in form:
            continue
        form[key] = LIST_SEPARATOR.join(url.query.getall(key))
    return form


def share_link(base_url: str, query: CanonicalQuery) -> str:
    """Shareable URL for ``query``; default queries yield the bare base URL."""
    return str(URL(base_url).with_query(encode(query)))


def to_query_string(form: PersistedForm) -> str:
    return URL.build(query=form).query_string
