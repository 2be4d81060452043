"""Subset filters applied after ranking.

Filters never reorder: each keeps the survivors in their incoming order,
so the ranking stays the sole source of display order.
"""

import logging
from collections.abc import Callable

from src.core.schemas import Listing

logger = logging.getLogger(__name__)

# A filter is a callable that takes listings and returns an ordered subset.
Filter = Callable[[list[Listing]], list[Listing]]


class CategoryFilter:
    """Keep only listings in the given category. None or '' is a no-op."""

    def __init__(self, category: str | None) -> None:
        self._category = (category or "").strip()

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        if not self._category:
            return listings
        result = [item for item in listings if item.category == self._category]
        excluded = len(listings) - len(result)
        if excluded:
            logger.debug("CategoryFilter(%s): removed %d listings", self._category, excluded)
        return result


class FeaturedFilter:
    """Keep only listings with the featured flag set."""

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        return [item for item in listings if item.featured]


def run_filter_chain(listings: list[Listing], filters: list[Filter]) -> list[Listing]:
    """Apply filters in order, returning the surviving listings."""
    result = listings
    for f in filters:
        result = f(result)
    return result
