"""Browsing controller and the persisted-form location it reconciles with."""

from .controller import FetchStatus, QueryStateController
from .location import HistoryLocation, Location

__all__ = ["FetchStatus", "HistoryLocation", "Location", "QueryStateController"]
