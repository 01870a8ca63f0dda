"""Shopview: filter, sort and page through a remote shop catalog."""

from shopview.__version__ import __version__

__all__ = ["__version__"]
