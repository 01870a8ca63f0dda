from __future__ import annotations

import asyncio

import pytest
from aiohttp import ClientConnectionError

from shopview.api import resilience
from shopview.api.errors import ServerError


def test_retry_delay_prefers_retry_after() -> None:
    assert resilience.retry_delay_seconds(attempt=1, retry_after="7") == 7
    assert resilience.retry_delay_seconds(attempt=2, retry_after="soon") == 4
    assert resilience.retry_delay_seconds(attempt=3) == 8


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (asyncio.TimeoutError(), True),
        (ClientConnectionError("reset"), True),
        (ServerError(429), True),
        (ServerError(503), True),
        (ServerError(400), False),
        (ServerError(404), False),
        (ValueError("bad"), False),
    ],
)
def test_is_retryable_exception(exc: Exception, expected: bool) -> None:
    assert resilience.is_retryable_exception(exc) is expected


@pytest.mark.asyncio
async def test_run_with_retries_retries_transient_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    sleeps: list[float] = []
    retries: list[tuple[int, int, int]] = []
    attempts = 0

    async def _fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    async def _operation() -> str:
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise ServerError(502, retry_after="2" if attempts == 1 else None)
        return "ok"

    monkeypatch.setattr(resilience.asyncio, "sleep", _fake_sleep)

    result = await resilience.run_with_retries(
        _operation,
        max_attempts=3,
        on_retry=lambda attempt, max_attempts, delay, _exc: retries.append((attempt, max_attempts, delay)),
        retry_after=lambda exc: getattr(exc, "retry_after", None),
    )

    assert result == "ok"
    assert sleeps == [2, 4]
    assert retries == [(1, 3, 2), (2, 3, 4)]


@pytest.mark.asyncio
async def test_run_with_retries_gives_up_after_max_attempts(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = 0

    async def _fake_sleep(_delay: float) -> None:
        return None

    async def _operation() -> None:
        nonlocal calls
        calls += 1
        raise asyncio.TimeoutError()

    monkeypatch.setattr(resilience.asyncio, "sleep", _fake_sleep)

    with pytest.raises(asyncio.TimeoutError):
        await resilience.run_with_retries(_operation, max_attempts=2)
    assert calls == 2


def test_payload_guards() -> None:
    assert resilience.dict_rows({"data": None}, "data", "products") == []
    assert resilience.dict_rows({"data": [{"id": 1}]}, "data", "products") == [{"id": 1}]
    assert resilience.int_field({"index": "3"}, "index", "page") == 3
    with pytest.raises(ValueError, match="products.data has unexpected type 'str'"):
        resilience.dict_rows({"data": "x"}, "data", "products")
    with pytest.raises(ValueError, match=r"products.data\[0\] has unexpected type 'int'"):
        resilience.dict_rows({"data": [7]}, "data", "products")
    with pytest.raises(ValueError, match="missing or not numeric"):
        resilience.int_field({}, "index", "page")
