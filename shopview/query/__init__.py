"""Canonical query model, draft editing and the persisted-form codec."""

from .canonical import (
    ALLOWED_PAGE_SIZES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_KEY,
    SortKey,
    canonicalize_id_set,
    canonicalize_price,
    canonicalize_tag_set,
    parse_positive_int,
    parse_sort_key,
)
from .codec import PersistedForm, decode, encode, form_from_link, share_link
from .draft import DraftQuery, canonicalize_draft, draft_errors, draft_from_query
from .types import (
    DEFAULT_QUERY,
    CanonicalQuery,
    FacetKind,
    FacetOption,
    PageResult,
    Product,
    SortRule,
)

__all__ = [
    "ALLOWED_PAGE_SIZES",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_QUERY",
    "DEFAULT_SORT_KEY",
    "CanonicalQuery",
    "DraftQuery",
    "FacetKind",
    "FacetOption",
    "PageResult",
    "PersistedForm",
    "Product",
    "SortKey",
    "SortRule",
    "canonicalize_draft",
    "canonicalize_id_set",
    "canonicalize_price",
    "canonicalize_tag_set",
    "decode",
    "draft_errors",
    "draft_from_query",
    "encode",
    "form_from_link",
    "parse_positive_int",
    "parse_sort_key",
    "share_link",
]
