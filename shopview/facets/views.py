"""Derived values computed from controller state on demand."""

from __future__ import annotations

from typing import Iterable

from shopview.query.types import FacetOption


def filter_facet_options(options: Iterable[FacetOption], text: str | None) -> list[FacetOption]:
    """Options whose value or label contains ``text``, case-insensitively."""
    needle = (text or "").strip().casefold()
    if not needle:
        return list(options)
    return [
        option
        for option in options
        if needle in option.value.casefold()
        or (option.label is not None and needle in option.label.casefold())
    ]


def page_window(current: int, total_pages: int, width: int = 5) -> list[int]:
    """Page indexes for a fixed-width button row centered on ``current``."""
    if total_pages < 1 or width < 1:
        return []
    width = min(width, total_pages)
    current = min(max(current, 1), total_pages)
    start = current - width // 2
    start = max(1, min(start, total_pages - width + 1))
    return list(range(start, start + width))
