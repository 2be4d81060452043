"""Sponsorship ordering: tier priority, then featured, then name.

Used on its own for category and featured pages, and as the tie-break
key under relevance scores in search.
"""

from collections.abc import Iterable

from src.core.schemas import Listing

# The legacy "featured" tier ranks with "category".
TIER_PRIORITY: dict[str, int] = {
    "premium": 4,
    "category": 3,
    "featured": 3,
    "basic": 2,
}


def tier_priority(listing: Listing) -> int:
    """Return the tier priority of a listing; 0 when unsponsored."""
    return TIER_PRIORITY.get(listing.sponsored_tier or "", 0)


def sponsorship_key(listing: Listing) -> tuple[int, int, str, str]:
    """Ascending sort key that puts higher tiers and featured listings first.

    Slug is the final component so the order is total even for equal names.
    """
    return (-tier_priority(listing), 0 if listing.featured else 1, listing.name, listing.slug)


def order_by_sponsorship(listings: Iterable[Listing]) -> list[Listing]:
    """Return a new list ordered by tier, featured flag and name."""
    return sorted(listings, key=sponsorship_key)
