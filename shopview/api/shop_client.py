"""aiohttp adapter for the shop catalog API (products and filter facets)."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from shopview import logger
from shopview.__version__ import __version__
from shopview.api.errors import ServerError, TransportError
from shopview.api.protocols import FacetFetcher, ResultFetcher
from shopview.api.resilience import (
    dict_rows,
    expect_dict,
    int_field,
    run_with_retries,
)
from shopview.config import ApiConfig
from shopview.query.types import (
    CanonicalQuery,
    FacetKind,
    FacetOption,
    PageResult,
    Product,
    SortRule,
)

DEFAULT_USER_AGENT = f"Shopview/{__version__}"
PRODUCTS_PATH = "/shop/products"
FILTERS_PATH = "/shop/filters"

QueryParams = List[Tuple[str, str]]


def product_params(query: CanonicalQuery) -> QueryParams:
    """Request parameters for a products page; tags and authors repeat."""
    params: QueryParams = []
    if query.search:
        params.append(("name", query.search))
    params.extend(("tags", tag) for tag in query.tags)
    params.extend(("author", author) for author in query.authors)
    if query.currency:
        params.append(("currency", query.currency))
    if query.min_price_cents is not None:
        params.append(("min_price_cents", str(query.min_price_cents)))
    if query.max_price_cents is not None:
        params.append(("max_price_cents", str(query.max_price_cents)))
    field, direction = query.sort.rule
    params.append(("sort", f"{field}:{direction}"))
    params.append(("page", str(query.page)))
    params.append(("page_size", str(query.page_size)))
    return params


def parse_page(payload: object) -> PageResult:
    root = expect_dict(payload, "products payload")
    page = expect_dict(root.get("page"), "products.page")
    items: list[Product] = []
    for idx, row in enumerate(dict_rows(root, "data", "products")):
        product = _map_product(row)
        if product is None:
            logger.warning(f"Skipping malformed product row #{idx} (missing id or price)")
            continue
        items.append(product)
    sort_rules = tuple(
        SortRule(field=str(rule.get("field", "")), direction=str(rule.get("direction", "asc")))
        for rule in dict_rows(root, "sort", "products")
    )
    return PageResult(
        index=int_field(page, "index", "products.page"),
        size=int_field(page, "size", "products.page"),
        total_items=int_field(page, "totalItems", "products.page", default=0),
        total_pages=int_field(page, "totalPages", "products.page", default=0),
        has_prev=bool(page.get("hasPrev", False)),
        has_next=bool(page.get("hasNext", False)),
        items=tuple(items),
        sort=sort_rules,
    )


def _map_product(row: Dict[str, Any]) -> Optional[Product]:
    product_id = row.get("id")
    price = row.get("priceCents")
    if not product_id or isinstance(price, bool):
        return None
    try:
        price_cents = int(price)
    except (TypeError, ValueError, OverflowError):
        return None
    tags = row.get("tags") if isinstance(row.get("tags"), list) else []
    return Product(
        id=str(product_id),
        slug=str(row.get("slug") or ""),
        name=str(row.get("name") or ""),
        price_cents=price_cents,
        currency=str(row.get("currency") or ""),
        description=row.get("description"),
        author_user_id=row.get("authorUserId"),
        author_display_name=row.get("authorDisplayName"),
        image_url=row.get("imageUrl"),
        tags=tuple(str(tag) for tag in tags if isinstance(tag, str)),
        is_active=bool(row.get("isActive", True)),
        created_at=_timestamp(row.get("createdAt")),
        updated_at=_timestamp(row.get("updatedAt")),
    )


def _timestamp(value: object) -> int:
    """Epoch timestamp or 0 when the field is absent or unparsable."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_facets(payload: object, kind: FacetKind) -> list[FacetOption]:
    root = expect_dict(payload, "filters payload")
    options: list[FacetOption] = []
    for row in dict_rows(root, kind.value, "filters"):
        value = row.get("value")
        if not isinstance(value, str) or not value:
            continue
        try:
            count = max(0, int(row.get("count", 0)))
        except (TypeError, ValueError):
            count = 0
        label = row.get("label") if kind is FacetKind.AUTHORS else None
        options.append(FacetOption(value=value, count=count, label=label if isinstance(label, str) else None))
    return options


class ShopApiClient(ResultFetcher, FacetFetcher):
    """HTTP implementation of both catalog fetchers."""

    def __init__(self, api: ApiConfig):
        self.api = api
        self.base_url = api.origin.rstrip("/")
        self._semaphore = asyncio.Semaphore(api.max_concurrency)
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def fetch_page(self, query: CanonicalQuery) -> PageResult:
        data = await self._request(PRODUCTS_PATH, product_params(query))
        try:
            return parse_page(data)
        except ValueError as exc:
            raise TransportError(f"Malformed products payload: {exc}") from exc

    async def fetch_facets(self, kind: FacetKind, scope: str) -> Sequence[FacetOption]:
        data = await self._request(FILTERS_PATH, [("scope", scope), ("facet", kind.value)])
        try:
            return parse_facets(data, kind)
        except ValueError as exc:
            raise TransportError(f"Malformed filters payload: {exc}") from exc

    async def _request(self, path: str, params: QueryParams) -> Any:
        url = f"{self.base_url}{path}"
        logger.get_logger().api_request("GET", url, params)
        request_start = time.time()

        def _on_retry(attempt: int, max_attempts: int, delay: int, _exc: Exception) -> None:
            logger.get_logger().api_retry("Shop API", attempt, max_attempts, delay)

        async with self._semaphore:
            try:
                status, data = await run_with_retries(
                    lambda: self._get_once(url, params),
                    max_attempts=self.api.max_attempts,
                    on_retry=_on_retry,
                    retry_after=lambda exc: getattr(exc, "retry_after", None),
                )
            except ServerError:
                raise
            except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
                logger.get_logger().api_failed("Shop API", self.api.max_attempts)
                raise TransportError(f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__) from exc
        elapsed_ms = (time.time() - request_start) * 1000
        logger.get_logger().api_response(status, data, elapsed_ms)
        return data

    async def _get_once(self, url: str, params: QueryParams) -> tuple[int, Any]:
        session = await self._ensure_session()
        async with session.get(url, params=params) as response:
            if response.status >= 400:
                text = await response.text()
                raise ServerError(response.status, text, retry_after=response.headers.get("Retry-After"))
            try:
                data = await response.json()
            except (aiohttp.ContentTypeError, ValueError) as exc:
                raise TransportError(f"Response from {url} is not JSON") from exc
            return response.status, data

    async def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is not None and not session.closed:
            return session

        async with self._session_lock:
            session = self._session
            if session is None or session.closed:
                timeout = aiohttp.ClientTimeout(total=self.api.timeout)
                self._session = aiohttp.ClientSession(
                    headers={"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"},
                    timeout=timeout,
                )
            return self._session

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()
