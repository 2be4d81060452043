"""Rule-based relevance scoring for directory listings.

A listing's text score is the sum of weighted case-insensitive matches of
the query against its fields. Only the strongest name rule counts; every
other signal is additive. A small commercial bonus for sponsorship tier and
the featured flag is added on top but never admits a listing by itself:
listings with a zero text score are dropped from non-empty searches.
"""

import logging
from collections.abc import Iterable

from src.core.config import RankingConfig
from src.core.schemas import Listing, ScoredListing
from src.ranking.ordering import order_by_sponsorship, sponsorship_key

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = RankingConfig()


def normalize_query(query: str | None) -> str:
    """Trim and lowercase a raw query string."""
    return (query or "").strip().lower()


def text_score(listing: Listing, needle: str, config: RankingConfig = _DEFAULT_CONFIG) -> int:
    """Score the textual match of an already-normalized needle against a listing."""
    if not needle:
        return 0

    score = 0
    name = listing.name.lower()

    if name == needle:
        score += config.name_exact
    elif name.startswith(needle):
        score += config.name_prefix
    elif needle in name:
        score += config.name_substring

    category = listing.category.lower()
    if needle in (category, category.replace("-", " ")):
        score += config.category_exact

    if needle in listing.short_description.lower():
        score += config.short_description

    if _any_contains(listing.subcategories, needle):
        score += config.subcategory

    if _any_contains(listing.use_cases, needle):
        score += config.use_case

    if needle in listing.description.lower():
        score += config.description

    if _any_contains(listing.integrations, needle):
        score += config.integration

    return score


def commercial_bonus(listing: Listing, config: RankingConfig = _DEFAULT_CONFIG) -> int:
    """Bonus for sponsorship tier plus the independent featured flag."""
    tier = listing.sponsored_tier
    bonus = 0
    if tier == "premium":
        bonus += config.premium_bonus
    elif tier in ("category", "featured"):
        bonus += config.category_bonus
    elif tier == "basic":
        bonus += config.basic_bonus
    if listing.featured:
        bonus += config.featured_bonus
    return bonus


def score_listing(
    listing: Listing,
    query: str,
    config: RankingConfig = _DEFAULT_CONFIG,
) -> ScoredListing:
    """Score a single listing against a raw query."""
    return ScoredListing(
        listing=listing,
        text_score=text_score(listing, normalize_query(query), config),
        commercial_bonus=commercial_bonus(listing, config),
    )


def score_listings(
    listings: Iterable[Listing],
    query: str,
    config: RankingConfig = _DEFAULT_CONFIG,
) -> list[ScoredListing]:
    """Score and rank listings for a non-empty query.

    Listings with no textual match are dropped. Survivors are sorted by
    total score descending, ties resolved by the sponsorship order.
    """
    needle = normalize_query(query)
    if not needle:
        return []

    scored = [score_listing(listing, needle, config) for listing in listings]
    matched = [s for s in scored if s.text_score > 0]
    dropped = len(scored) - len(matched)
    if dropped:
        logger.debug("score_listings: %d of %d listings did not match %r", dropped, len(scored), needle)

    matched.sort(key=lambda s: (-s.score, *sponsorship_key(s.listing)))
    return matched


def rank_by_relevance(
    listings: Iterable[Listing],
    query: str,
    config: RankingConfig = _DEFAULT_CONFIG,
) -> list[Listing]:
    """Return the listings to display for a query, in display order.

    An empty query keeps every listing and orders them by sponsorship alone.
    """
    if not normalize_query(query):
        return order_by_sponsorship(listings)
    return [s.listing for s in score_listings(listings, query, config)]


def _any_contains(tags: Iterable[str], needle: str) -> bool:
    return any(needle in tag.lower() for tag in tags)
