from __future__ import annotations

import pytest

from shopview.query import codec
from shopview.query.canonical import SortKey
from shopview.query.codec import decode, encode, form_from_link, share_link
from shopview.query.types import DEFAULT_QUERY, CanonicalQuery

_QUERIES = [
    DEFAULT_QUERY,
    CanonicalQuery.build(search="Shoes", tags=["red", "blue"], page=2),
    CanonicalQuery.build(authors=["User-B", "user-a"], currency="eur", sort="priceDesc", page_size=48),
    CanonicalQuery.build(min_price_cents=0, max_price_cents=0),
    CanonicalQuery.build(min_price_cents=500, page=7, search="a,b & c"),
    CanonicalQuery.build(max_price_cents=9_999, sort=SortKey.NAME),
]


@pytest.mark.parametrize("query", _QUERIES)
def test_decode_inverts_encode(query: CanonicalQuery) -> None:
    assert decode(encode(query)) == query


@pytest.mark.parametrize("query", _QUERIES)
def test_encode_is_a_fixed_point(query: CanonicalQuery) -> None:
    form = encode(query)
    assert encode(decode(form)) == form


def test_default_query_encodes_to_empty_form() -> None:
    assert encode(DEFAULT_QUERY) == {}


def test_scenario_tags_and_page_decode() -> None:
    query = decode({"tags": "red,BLUE,red", "page": "2"})

    assert query.tags == ("blue", "red")
    assert query.page == 2
    assert CanonicalQuery.build(tags=["blue", "red"], page=2) == query
    assert encode(query) == {"tags": "blue,red", "page": "2"}
    assert encode(query.with_page(1)) == {"tags": "blue,red"}


def test_decode_tolerates_malformed_and_extra_keys() -> None:
    query = decode(
        {
            "page": "-3",
            "page_size": "1000",
            "sort": "cheapest",
            "min_price": "abc",
            "max_price": "",
            "currency": "euro",
            "utm_source": "mail",
        }
    )
    assert query == DEFAULT_QUERY


def test_decode_handles_none_and_repeated_keys() -> None:
    assert decode(None) == DEFAULT_QUERY
    assert decode({"tags": ["Red", "blue"]}).tags == ("blue", "red")


def test_decode_drops_inverted_price_range() -> None:
    query = decode({"min_price": "900", "max_price": "100"})
    assert query.min_price_cents is None
    assert query.max_price_cents is None


def test_decode_rounds_fractional_cents() -> None:
    assert decode({"min_price": "99.5"}).min_price_cents == 100


def test_encode_emits_keys_in_stable_order() -> None:
    query = CanonicalQuery.build(page=3, search="x", tags=["b"], max_price_cents=10)
    assert list(encode(query)) == ["search", "tags", "max_price", "page"]


def test_form_from_link_reads_full_urls_and_bare_query_strings() -> None:
    assert form_from_link("https://shop.example/shop?tags=red&page=2") == {"tags": "red", "page": "2"}
    assert form_from_link("?search=hat") == {"search": "hat"}
    assert form_from_link("tags=a&tags=b") == {"tags": "a,b"}
    assert form_from_link("") == {}


def test_share_link_round_trips_through_form_from_link() -> None:
    query = CanonicalQuery.build(search="Blue hat", tags=["wool", "hat"], page=3)
    link = share_link("https://shop.example/shop", query)

    assert link.startswith("https://shop.example/shop?")
    assert decode(form_from_link(link)) == query


def test_share_link_for_default_query_has_no_query_string() -> None:
    assert share_link("https://shop.example/shop", DEFAULT_QUERY) == "https://shop.example/shop"


def test_to_query_string() -> None:
    assert codec.to_query_string({"page": "2"}) == "page=2"
