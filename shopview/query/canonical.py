"""Normalization rules for query fragments.

Every function here is total: malformed input degrades to a safe default
instead of raising, so callers can feed raw user or link input straight in.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Iterable

MAX_SAFE_INTEGER = 2**53 - 1
ALLOWED_PAGE_SIZES: tuple[int, ...] = (12, 24, 48, 96)
DEFAULT_PAGE_SIZE = 24
DEFAULT_PAGE = 1

_DIGITS = re.compile(r"^[0-9]+$")
_CURRENCY = re.compile(r"^[A-Z]{3}$")


class SortKey(str, Enum):
    """Sort orders offered by the catalog, keyed by their persisted value."""

    NEWEST = "date"
    PRICE_ASC = "priceAsc"
    PRICE_DESC = "priceDesc"
    NAME = "name"

    @property
    def rule(self) -> tuple[str, str]:
        """Server sort rule as ``(field, direction)``."""
        return _SORT_RULES[self]

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]


_SORT_RULES: dict[SortKey, tuple[str, str]] = {
    SortKey.NEWEST: ("createdAt", "desc"),
    SortKey.PRICE_ASC: ("priceCents", "asc"),
    SortKey.PRICE_DESC: ("priceCents", "desc"),
    SortKey.NAME: ("name", "asc"),
}
_SORT_LABELS: dict[SortKey, str] = {
    SortKey.NEWEST: "Newest",
    SortKey.PRICE_ASC: "Price low to high",
    SortKey.PRICE_DESC: "Price high to low",
    SortKey.NAME: "Name",
}
DEFAULT_SORT_KEY = SortKey.NEWEST


def _dedupe_sorted(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted({value for value in values if value}))


def canonicalize_tag_set(tags: Iterable[str] | None) -> tuple[str, ...]:
    """Lower-case, trim, drop empties and duplicates; sorted."""
    if not tags:
        return ()
    return _dedupe_sorted(str(tag).strip().lower() for tag in tags if tag is not None)


def canonicalize_id_set(ids: Iterable[str] | None) -> tuple[str, ...]:
    """Trim, drop empties and duplicates; sorted, case preserved."""
    if not ids:
        return ()
    return _dedupe_sorted(str(value).strip() for value in ids if value is not None)


def parse_number(raw: object) -> float | None:
    """Best-effort numeric parse. Returns None for anything non-numeric."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def canonicalize_price(value: float | int | None) -> int | None:
    """Price in cents: None/NaN -> None, negatives clamp to 0, round half up."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    if number < 0:
        return 0
    return int(math.floor(number + 0.5))


def parse_positive_int(raw: object, fallback: int) -> int:
    """Accept only safe positive integers, else ``fallback``."""
    if raw is None or isinstance(raw, bool):
        return fallback
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            return fallback
        value = int(raw)
    else:
        text = str(raw).strip()
        if not _DIGITS.match(text):
            return fallback
        value = int(text)
    if value < 1 or value > MAX_SAFE_INTEGER:
        return fallback
    return value


def parse_page_size(raw: object) -> int:
    size = parse_positive_int(raw, DEFAULT_PAGE_SIZE)
    return size if size in ALLOWED_PAGE_SIZES else DEFAULT_PAGE_SIZE


def parse_sort_key(raw: object) -> SortKey:
    if isinstance(raw, SortKey):
        return raw
    if raw is None:
        return DEFAULT_SORT_KEY
    try:
        return SortKey(str(raw).strip())
    except ValueError:
        return DEFAULT_SORT_KEY


def canonicalize_search(raw: object) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def canonicalize_currency(raw: object) -> str | None:
    if raw is None:
        return None
    code = str(raw).strip().upper()
    return code if _CURRENCY.match(code) else None
