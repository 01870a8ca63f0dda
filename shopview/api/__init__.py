"""Collaborator contracts and the HTTP implementation of the catalog fetchers."""

from .errors import ServerError, ShopviewError, TransportError
from .protocols import FacetFetcher, ResultFetcher
from .shop_client import ShopApiClient

__all__ = [
    "FacetFetcher",
    "ResultFetcher",
    "ServerError",
    "ShopApiClient",
    "ShopviewError",
    "TransportError",
]
