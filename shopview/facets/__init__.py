"""Facet option caching and facet-derived views."""

from .cache import FacetCache, cache_key, sort_for_display
from .storage import InMemorySessionStorage, SessionStorage
from .views import filter_facet_options, page_window

__all__ = [
    "FacetCache",
    "InMemorySessionStorage",
    "SessionStorage",
    "cache_key",
    "filter_facet_options",
    "page_window",
    "sort_for_display",
]
