"""Content stores: where the ranking engine gets its listing snapshot.

Every page asks a ContentStore for listings; which backend answers is
decided once by build_store() from settings rather than inside ranking.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import yaml

from src.core.config import RankingConfig, Settings
from src.core.db import fetch_listing, fetch_listings, init_db
from src.core.schemas import (
    CategoryPage,
    Comparison,
    ComparisonPage,
    DirectoryStats,
    Listing,
    McpPlatform,
)
from src.ranking.matcher import FeaturedFilter, run_filter_chain
from src.ranking.ordering import order_by_sponsorship
from src.ranking.search import SearchResults, search_listings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContentStore(ABC):
    """Read-only source of published listings and the editorial pages built on them."""

    @abstractmethod
    def all_listings(self) -> list[Listing]:
        """Return every published listing, ordered by name."""

    @abstractmethod
    def get_listing(self, slug: str) -> Listing | None:
        """Return one published listing by slug."""

    @abstractmethod
    def category_pages(self) -> list[CategoryPage]:
        """Return all curated category pages."""

    @abstractmethod
    def comparison_pages(self) -> list[ComparisonPage]:
        """Return all "A vs B" comparison pages."""

    @abstractmethod
    def mcp_platforms(self) -> list[McpPlatform]:
        """Return all MCP platform groupings."""

    def listings_by_category(self, category: str) -> list[Listing]:
        return [item for item in self.all_listings() if item.category == category]

    def featured_listings(self) -> list[Listing]:
        """Featured listings, sponsors first."""
        return order_by_sponsorship(run_filter_chain(self.all_listings(), [FeaturedFilter()]))

    def category_page(self, slug: str) -> CategoryPage | None:
        return next((p for p in self.category_pages() if p.slug == slug), None)

    def category_page_listings(self, slug: str) -> list[Listing]:
        """Resolve a category page's tool slugs, skipping unknown ones, sponsors first."""
        page = self.category_page(slug)
        if page is None:
            return []
        return self._resolve(page.tool_slugs, f"Category page '{slug}'")

    def comparison_page(self, slug: str) -> ComparisonPage | None:
        return next((c for c in self.comparison_pages() if c.slug == slug), None)

    def comparison(self, slug: str) -> Comparison | None:
        """Resolve a comparison page and both of its tools; None if any is missing."""
        page = self.comparison_page(slug)
        if page is None:
            return None
        tool_a = self.get_listing(page.tool_a_slug)
        tool_b = self.get_listing(page.tool_b_slug)
        if tool_a is None or tool_b is None:
            logger.debug("Comparison '%s' references an unknown tool", slug)
            return None
        return Comparison(page=page, tool_a=tool_a, tool_b=tool_b)

    def mcp_platform(self, slug: str) -> McpPlatform | None:
        return next((p for p in self.mcp_platforms() if p.slug == slug), None)

    def mcp_platform_listings(self, slug: str) -> list[Listing]:
        """MCP servers grouped under a platform, sponsors first."""
        platform = self.mcp_platform(slug)
        if platform is None:
            return []
        return self._resolve(platform.tool_slugs, f"MCP platform '{slug}'")

    def stats(self) -> DirectoryStats:
        listings = self.all_listings()
        return DirectoryStats(
            total_tools=len(listings),
            total_categories=len(self.category_pages()),
            total_comparisons=len(self.comparison_pages()),
            total_mcp_servers=sum(1 for item in listings if item.category == "mcp-server"),
        )

    def _resolve(self, slugs: list[str], owner: str) -> list[Listing]:
        resolved = [self.get_listing(s) for s in slugs]
        missing = [s for s, item in zip(slugs, resolved) if item is None]
        if missing:
            logger.debug("%s references unknown slugs: %s", owner, missing)
        return order_by_sponsorship(item for item in resolved if item is not None)


class StaticContentStore(ContentStore):
    """In-memory store, typically loaded from the bundled YAML data files."""

    def __init__(
        self,
        listings: list[Listing],
        pages: list[CategoryPage] | None = None,
        comparisons: list[ComparisonPage] | None = None,
        platforms: list[McpPlatform] | None = None,
    ) -> None:
        self._listings = sorted(listings, key=lambda item: (item.name, item.slug))
        self._by_slug = {item.slug: item for item in self._listings}
        self._pages = list(pages or [])
        self._comparisons = list(comparisons or [])
        self._platforms = list(platforms or [])

    @classmethod
    def from_yaml(
        cls,
        listings_path: str | Path,
        categories_path: str | Path | None = None,
        comparisons_path: str | Path | None = None,
        platforms_path: str | Path | None = None,
    ) -> "StaticContentStore":
        """Load listings from YAML; the editorial files are optional."""
        listings = [Listing.model_validate(item) for item in _load_yaml_list(listings_path, "listings")]
        pages = [CategoryPage.model_validate(i) for i in _load_optional(categories_path, "categories")]
        comparisons = [
            ComparisonPage.model_validate(i) for i in _load_optional(comparisons_path, "comparisons")
        ]
        platforms = [McpPlatform.model_validate(i) for i in _load_optional(platforms_path, "platforms")]
        logger.info(
            "Loaded %d static listings, %d category pages, %d comparisons, %d MCP platforms",
            len(listings), len(pages), len(comparisons), len(platforms),
        )
        return cls(listings, pages, comparisons, platforms)

    def all_listings(self) -> list[Listing]:
        return list(self._listings)

    def get_listing(self, slug: str) -> Listing | None:
        return self._by_slug.get(slug)

    def category_pages(self) -> list[CategoryPage]:
        return list(self._pages)

    def comparison_pages(self) -> list[ComparisonPage]:
        return list(self._comparisons)

    def mcp_platforms(self) -> list[McpPlatform]:
        return list(self._platforms)


class SqliteContentStore(ContentStore):
    """Store backed by the sqlite listings table; only published rows are visible.

    Editorial pages (categories, comparisons, MCP platforms) are not stored
    in the database, so they are passed in, usually from the static YAML.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        pages: list[CategoryPage] | None = None,
        comparisons: list[ComparisonPage] | None = None,
        platforms: list[McpPlatform] | None = None,
    ) -> None:
        self._conn = conn
        self._pages = list(pages or [])
        self._comparisons = list(comparisons or [])
        self._platforms = list(platforms or [])

    def all_listings(self) -> list[Listing]:
        return fetch_listings(self._conn)

    def get_listing(self, slug: str) -> Listing | None:
        return fetch_listing(self._conn, slug)

    def listings_by_category(self, category: str) -> list[Listing]:
        return fetch_listings(self._conn, category=category)

    def featured_listings(self) -> list[Listing]:
        return order_by_sponsorship(fetch_listings(self._conn, featured=True))

    def category_pages(self) -> list[CategoryPage]:
        return list(self._pages)

    def comparison_pages(self) -> list[ComparisonPage]:
        return list(self._comparisons)

    def mcp_platforms(self) -> list[McpPlatform]:
        return list(self._platforms)


class FallbackContentStore(ContentStore):
    """Answer from the primary store, falling back when it raises sqlite3.Error."""

    def __init__(self, primary: ContentStore, fallback: ContentStore) -> None:
        self._primary = primary
        self._fallback = fallback

    def _call(self, method: str, fn: Callable[[ContentStore], T]) -> T:
        try:
            return fn(self._primary)
        except sqlite3.Error:
            logger.warning("Primary store failed in %s; falling back to static data", method, exc_info=True)
            return fn(self._fallback)

    def all_listings(self) -> list[Listing]:
        return self._call("all_listings", lambda s: s.all_listings())

    def get_listing(self, slug: str) -> Listing | None:
        found = self._call("get_listing", lambda s: s.get_listing(slug))
        if found is None:
            return self._fallback.get_listing(slug)
        return found

    def listings_by_category(self, category: str) -> list[Listing]:
        return self._call("listings_by_category", lambda s: s.listings_by_category(category))

    def featured_listings(self) -> list[Listing]:
        return self._call("featured_listings", lambda s: s.featured_listings())

    def category_pages(self) -> list[CategoryPage]:
        return self._call("category_pages", lambda s: s.category_pages())

    def comparison_pages(self) -> list[ComparisonPage]:
        return self._call("comparison_pages", lambda s: s.comparison_pages())

    def mcp_platforms(self) -> list[McpPlatform]:
        return self._call("mcp_platforms", lambda s: s.mcp_platforms())


def build_store(settings: Settings, conn: sqlite3.Connection | None = None) -> ContentStore:
    """Build the content store selected by settings.store.backend."""
    cfg = settings.store
    static = StaticContentStore.from_yaml(
        cfg.listings_path, cfg.categories_path, cfg.comparisons_path, cfg.mcp_platforms_path,
    )
    if cfg.backend == "static":
        return static

    conn = conn or init_db(settings.database.path)
    sqlite_store = SqliteContentStore(
        conn, static.category_pages(), static.comparison_pages(), static.mcp_platforms(),
    )
    if cfg.fallback_to_static:
        return FallbackContentStore(sqlite_store, static)
    return sqlite_store


def search_store(
    store: ContentStore,
    query: str = "",
    category: str | None = None,
    config: RankingConfig | None = None,
) -> SearchResults:
    """Take one snapshot of the store and run the composed search over it."""
    return search_listings(store.all_listings(), query, category, config)


def _load_yaml_list(path: str | Path, key: str) -> list[dict[str, Any]]:
    path = Path(path)
    if not path.exists():
        msg = f"Data file not found: {path}"
        raise FileNotFoundError(msg)
    raw = yaml.safe_load(path.read_text()) or {}
    if isinstance(raw, dict):
        raw = raw.get(key, [])
    if not isinstance(raw, list):
        msg = f"Expected a list under '{key}' in {path}"
        raise ValueError(msg)
    return raw


def _load_optional(path: str | Path | None, key: str) -> list[dict[str, Any]]:
    if path is None or not Path(path).exists():
        return []
    return _load_yaml_list(path, key)
