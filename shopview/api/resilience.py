"""Retry policy for transient shop API failures, plus JSON shape checks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aiohttp import ClientConnectionError, ServerTimeoutError

from shopview.api.errors import ServerError

RETRYABLE_HTTP_STATUSES = frozenset({429, 500, 502, 503, 504})

_T = TypeVar("_T")
OnRetry = Callable[[int, int, int, Exception], None]


def expect_dict(value: object, context: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{context} has unexpected type '{type(value).__name__}'")
    return value


def dict_rows(container: dict[str, Any], key: str, context: str) -> list[dict[str, Any]]:
    """``container[key]`` as a list of objects; absent or null means empty."""
    rows = container.get(key)
    where = f"{context}.{key}"
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ValueError(f"{where} has unexpected type '{type(rows).__name__}'")
    return [expect_dict(row, f"{where}[{idx}]") for idx, row in enumerate(rows)]


def int_field(container: dict[str, Any], key: str, context: str, default: int | None = None) -> int:
    raw = container.get(key, default)
    if raw is None or isinstance(raw, bool):
        raise ValueError(f"{context}.{key} is missing or not numeric")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{context}.{key} expected numeric value, got {raw!r}") from None


def is_retryable_exception(exc: Exception) -> bool:
    if isinstance(exc, ServerError):
        return exc.status in RETRYABLE_HTTP_STATUSES
    return isinstance(exc, (asyncio.TimeoutError, ClientConnectionError, ServerTimeoutError))


def retry_delay_seconds(*, attempt: int, retry_after: str | None = None) -> int:
    """Server-provided Retry-After wins; otherwise 2, 4, 8... seconds."""
    try:
        hinted = int(float(retry_after)) if retry_after else 0
    except ValueError:
        hinted = 0
    return hinted if hinted > 0 else 2 ** attempt


async def run_with_retries(
    operation: Callable[[], Awaitable[_T]],
    *,
    max_attempts: int,
    on_retry: OnRetry | None = None,
    retry_after: Callable[[Exception], str | None] | None = None,
) -> _T:
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts or not is_retryable_exception(exc):
                raise
            delay = retry_delay_seconds(
                attempt=attempt,
                retry_after=retry_after(exc) if retry_after else None,
            )
            if on_retry:
                on_retry(attempt, max_attempts, delay, exc)
            await asyncio.sleep(delay)
            attempt += 1
