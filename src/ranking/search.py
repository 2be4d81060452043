"""Composed search: rank, then narrow by category."""

from collections.abc import Iterable

from src.core.config import RankingConfig
from src.core.schemas import Listing
from src.ranking.matcher import CategoryFilter, run_filter_chain
from src.ranking.scorer import normalize_query, rank_by_relevance


class SearchResults:
    """Outcome of one search request.

    ``ranked`` is the unfiltered ranking (used for category facet counts);
    ``listings`` is what the page displays.
    """

    def __init__(
        self,
        query: str,
        category: str | None,
        ranked: list[Listing],
        listings: list[Listing],
    ) -> None:
        self.query = query
        self.category = category
        self.ranked = ranked
        self.listings = listings

    @property
    def counts(self) -> dict[str, int]:
        return category_counts(self.ranked)


def search_listings(
    listings: Iterable[Listing],
    query: str = "",
    category: str | None = None,
    config: RankingConfig | None = None,
) -> SearchResults:
    """Rank a listing snapshot for a query and apply the category filter.

    The category filter is a pure subset of the ranked sequence.
    """
    snapshot = list(listings)
    ranked = rank_by_relevance(snapshot, query, config or RankingConfig())
    filtered = run_filter_chain(ranked, [CategoryFilter(category)])
    return SearchResults(
        query=normalize_query(query),
        category=category or None,
        ranked=ranked,
        listings=filtered,
    )


def category_counts(listings: Iterable[Listing]) -> dict[str, int]:
    """Count listings per category, keyed in order of first appearance."""
    counts: dict[str, int] = {}
    for listing in listings:
        counts[listing.category] = counts.get(listing.category, 0) + 1
    return counts
