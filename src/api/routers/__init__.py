"""Route groups mounted under fixed path prefixes.

``ROUTE_GROUPS`` is the dispatch table: groups are mounted in order and the
first route whose path matches handles the request. The handlers inside each
group belong to their own collaborators; this package only fixes where they
are mounted.
"""

from typing import NamedTuple

from fastapi import APIRouter

from src.api.constants import ANALYTICS_PREFIX, CUSTOMERS_PREFIX
from src.api.routers import analytics, customers


class RouteGroup(NamedTuple):
    """A router mounted under a path prefix."""

    prefix: str
    router: APIRouter


ROUTE_GROUPS: tuple[RouteGroup, ...] = (
    RouteGroup(CUSTOMERS_PREFIX, customers.router),
    RouteGroup(ANALYTICS_PREFIX, analytics.router),
)

__all__ = ["ROUTE_GROUPS", "RouteGroup"]
