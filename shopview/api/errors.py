"""Failure taxonomy shared by fetchers and the browsing controller."""

from __future__ import annotations


class ShopviewError(Exception):
    """Base class for Shopview errors."""


class TransportError(ShopviewError):
    """The request never produced a usable response (network, timeout, payload)."""


class ServerError(ShopviewError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, body: str = "", retry_after: str | None = None) -> None:
        self.status = status
        self.body = body
        self.retry_after = retry_after
        detail = f": {body}" if body else ""
        super().__init__(f"Server responded {status}{detail}")


def describe_failure(exc: BaseException) -> str:
    """Short user-facing text for a failed fetch."""
    if isinstance(exc, ServerError):
        body = exc.body.strip()
        if len(body) > 200:
            body = body[:200] + "..."
        return f"Failed to load products ({exc.status}){': ' + body if body else ''}"
    if isinstance(exc, TransportError):
        return f"Failed to load products: {exc}" if str(exc) else "Failed to load products"
    return "Failed to load products"
