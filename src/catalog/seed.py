"""Load the bundled static listings into the sqlite store."""

import logging
import sqlite3

from src.catalog.store import StaticContentStore
from src.core.db import set_sponsorship, upsert_listing

logger = logging.getLogger(__name__)


def seed_database(
    conn: sqlite3.Connection,
    store: StaticContentStore,
    *,
    with_sponsorship: bool = True,
) -> int:
    """Upsert every static listing as published. Returns the number written.

    Editorial fields are refreshed on re-seed; sponsorship is copied from the
    static data only when with_sponsorship is set.
    """
    count = 0
    for listing in store.all_listings():
        upsert_listing(conn, listing, status="published")
        if with_sponsorship:
            set_sponsorship(conn, listing.slug, listing.sponsored_tier, listing.featured)
        count += 1
    logger.info("Seeded %d listings", count)
    return count
