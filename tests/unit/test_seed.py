"""Tests for seeding sqlite from the static listings."""

from datetime import date

import pytest

from src.catalog.seed import seed_database
from src.catalog.store import StaticContentStore
from src.core.db import fetch_listing, fetch_listings, init_db, set_sponsorship
from src.core.schemas import Listing


@pytest.fixture()
def db(tmp_path):  # type: ignore[no-untyped-def]
    return init_db(tmp_path / "test.db")


@pytest.fixture()
def store() -> StaticContentStore:
    return StaticContentStore([
        Listing(slug="a", name="A", category="agent", sponsored_tier="premium", featured=True,
                last_updated=date(2025, 1, 1)),
        Listing(slug="b", name="B", category="infra", last_updated=date(2025, 1, 1)),
    ])


class TestSeedDatabase:
    def test_seeds_all(self, db, store: StaticContentStore) -> None:  # type: ignore[no-untyped-def]
        assert seed_database(db, store) == 2
        assert fetch_listings(db) == store.all_listings()

    def test_reseed_is_idempotent(self, db, store: StaticContentStore) -> None:  # type: ignore[no-untyped-def]
        seed_database(db, store)
        seed_database(db, store)
        assert len(fetch_listings(db)) == 2

    def test_without_sponsorship_keeps_live_tiers(self, db, store: StaticContentStore) -> None:  # type: ignore[no-untyped-def]
        seed_database(db, store)
        set_sponsorship(db, "b", "basic", False)
        seed_database(db, store, with_sponsorship=False)
        listing = fetch_listing(db, "b")
        assert listing is not None
        assert listing.sponsored_tier == "basic"
