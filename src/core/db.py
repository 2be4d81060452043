"""SQLite database layer for listings, accounts, subscriptions, and submissions."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from src.core.schemas import Listing

_LISTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS listings (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    slug              TEXT    NOT NULL UNIQUE,
    name              TEXT    NOT NULL,
    short_description TEXT    NOT NULL DEFAULT '',
    description       TEXT    NOT NULL DEFAULT '',
    category          TEXT    NOT NULL,
    subcategories     TEXT    DEFAULT '[]',
    use_cases         TEXT    DEFAULT '[]',
    integrations      TEXT    DEFAULT '[]',
    pricing_model     TEXT    NOT NULL DEFAULT 'Free',
    pricing           TEXT,
    github_url        TEXT,
    github_stars      INTEGER,
    website_url       TEXT    NOT NULL DEFAULT '',
    docs_url          TEXT,
    featured          INTEGER NOT NULL DEFAULT 0,
    sponsored_tier    TEXT,
    last_updated      TEXT    NOT NULL,
    pros              TEXT    DEFAULT '[]',
    cons              TEXT    DEFAULT '[]',
    setup_complexity  TEXT    NOT NULL DEFAULT 'Medium',
    maturity          TEXT    NOT NULL DEFAULT 'Early',
    account_id        INTEGER,
    status            TEXT    NOT NULL DEFAULT 'published'
);
"""

_ACCOUNTS_TABLE = """
CREATE TABLE IF NOT EXISTS accounts (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    email              TEXT NOT NULL UNIQUE,
    stripe_customer_id TEXT,
    created_at         TEXT NOT NULL
);
"""

_SUBSCRIPTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id                     INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id             INTEGER,
    listing_slug           TEXT NOT NULL,
    stripe_subscription_id TEXT NOT NULL UNIQUE,
    stripe_price_id        TEXT NOT NULL DEFAULT '',
    tier                   TEXT NOT NULL,
    status                 TEXT NOT NULL,
    current_period_end     TEXT
);
"""

_SUBMISSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS submissions (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id  INTEGER,
    payload     TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'pending',
    created_at  TEXT NOT NULL
);
"""

_LIST_COLUMNS = ("subcategories", "use_cases", "integrations", "pros", "cons")


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_LISTINGS_TABLE)
    conn.execute(_ACCOUNTS_TABLE)
    conn.execute(_SUBSCRIPTIONS_TABLE)
    conn.execute(_SUBMISSIONS_TABLE)
    conn.commit()
    return conn


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def _listing_params(listing: Listing, status: str, account_id: int | None) -> dict[str, Any]:
    data = listing.model_dump(mode="json")
    for col in _LIST_COLUMNS:
        data[col] = json.dumps(data[col])
    data["featured"] = int(listing.featured)
    data["status"] = status
    data["account_id"] = account_id
    return data


def row_to_listing(row: sqlite3.Row) -> Listing:
    """Map a listings row to a Listing; NULL list columns become empty."""
    data = dict(row)
    for col in _LIST_COLUMNS:
        data[col] = json.loads(data[col] or "[]")
    data["featured"] = bool(data["featured"])
    for key in ("id", "status", "account_id"):
        data.pop(key, None)
    return Listing.model_validate(data)


_LISTING_COLUMNS = (
    "slug, name, short_description, description, category, subcategories, "
    "use_cases, integrations, pricing_model, pricing, github_url, github_stars, "
    "website_url, docs_url, featured, sponsored_tier, last_updated, pros, cons, "
    "setup_complexity, maturity, account_id, status"
)

_LISTING_VALUES = (
    ":slug, :name, :short_description, :description, :category, :subcategories, "
    ":use_cases, :integrations, :pricing_model, :pricing, :github_url, :github_stars, "
    ":website_url, :docs_url, :featured, :sponsored_tier, :last_updated, :pros, :cons, "
    ":setup_complexity, :maturity, :account_id, :status"
)


def insert_listing(
    conn: sqlite3.Connection,
    listing: Listing,
    status: str = "published",
    account_id: int | None = None,
) -> bool:
    """Insert a listing, ignoring if the slug already exists.

    Returns True if a new row was inserted, False if it was a duplicate.
    """
    try:
        conn.execute(
            f"INSERT INTO listings ({_LISTING_COLUMNS}) VALUES ({_LISTING_VALUES})",
            _listing_params(listing, status, account_id),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False


def upsert_listing(
    conn: sqlite3.Connection,
    listing: Listing,
    status: str = "published",
) -> None:
    """Insert or fully replace the editorial fields of a listing by slug.

    Sponsorship columns and account link are left untouched on update.
    """
    conn.execute(
        f"""
        INSERT INTO listings ({_LISTING_COLUMNS}) VALUES ({_LISTING_VALUES})
        ON CONFLICT(slug) DO UPDATE SET
            name = excluded.name,
            short_description = excluded.short_description,
            description = excluded.description,
            category = excluded.category,
            subcategories = excluded.subcategories,
            use_cases = excluded.use_cases,
            integrations = excluded.integrations,
            pricing_model = excluded.pricing_model,
            pricing = excluded.pricing,
            github_url = excluded.github_url,
            github_stars = excluded.github_stars,
            website_url = excluded.website_url,
            docs_url = excluded.docs_url,
            last_updated = excluded.last_updated,
            pros = excluded.pros,
            cons = excluded.cons,
            setup_complexity = excluded.setup_complexity,
            maturity = excluded.maturity,
            status = excluded.status
        """,
        _listing_params(listing, status, None),
    )
    conn.commit()


def fetch_listings(
    conn: sqlite3.Connection,
    status: str = "published",
    category: str | None = None,
    featured: bool | None = None,
) -> list[Listing]:
    """Return listings with the given status, optionally narrowed, ordered by name."""
    clauses = ["status = ?"]
    params: list[Any] = [status]
    if category is not None:
        clauses.append("category = ?")
        params.append(category)
    if featured is not None:
        clauses.append("featured = ?")
        params.append(int(featured))
    rows = conn.execute(
        f"SELECT * FROM listings WHERE {' AND '.join(clauses)} ORDER BY name, slug",
        params,
    ).fetchall()
    return [row_to_listing(r) for r in rows]


def fetch_listing(
    conn: sqlite3.Connection,
    slug: str,
    status: str | None = "published",
) -> Listing | None:
    """Return one listing by slug, or None. status=None ignores status."""
    if status is None:
        row = conn.execute("SELECT * FROM listings WHERE slug = ?", (slug,)).fetchone()
    else:
        row = conn.execute(
            "SELECT * FROM listings WHERE slug = ? AND status = ?", (slug, status)
        ).fetchone()
    return row_to_listing(row) if row is not None else None


def listing_status(conn: sqlite3.Connection, slug: str) -> str | None:
    """Return the moderation status of a listing, or None if absent."""
    row = conn.execute("SELECT status FROM listings WHERE slug = ?", (slug,)).fetchone()
    return row["status"] if row is not None else None


def listing_exists(conn: sqlite3.Connection, slug: str, website_url: str = "") -> bool:
    """True if any listing already uses this slug or website URL."""
    row = conn.execute("SELECT 1 FROM listings WHERE slug = ? LIMIT 1", (slug,)).fetchone()
    if row is not None:
        return True
    if not website_url:
        return False
    row = conn.execute(
        "SELECT 1 FROM listings WHERE website_url = ? LIMIT 1", (website_url,)
    ).fetchone()
    return row is not None


def ensure_unique_slug(conn: sqlite3.Connection, base_slug: str) -> str:
    """Return base_slug, or base_slug-N with the smallest free N."""
    slug = base_slug
    attempt = 0
    while listing_exists(conn, slug):
        attempt += 1
        slug = f"{base_slug}-{attempt}"
    return slug


def set_sponsorship(
    conn: sqlite3.Connection,
    slug: str,
    tier: str | None,
    featured: bool,
    account_id: int | None = None,
) -> bool:
    """Set a listing's sponsorship columns. Returns False if the slug is unknown."""
    if account_id is None:
        cursor = conn.execute(
            "UPDATE listings SET sponsored_tier = ?, featured = ? WHERE slug = ?",
            (tier, int(featured), slug),
        )
    else:
        cursor = conn.execute(
            "UPDATE listings SET sponsored_tier = ?, featured = ?, account_id = ? WHERE slug = ?",
            (tier, int(featured), account_id, slug),
        )
    conn.commit()
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Accounts and subscriptions
# ---------------------------------------------------------------------------


def get_or_create_account(
    conn: sqlite3.Connection,
    email: str,
    stripe_customer_id: str | None = None,
) -> int:
    """Return the account id for an email, creating the account if needed.

    A non-empty customer id overwrites the stored one.
    """
    row = conn.execute("SELECT id FROM accounts WHERE email = ?", (email,)).fetchone()
    if row is not None:
        account_id = int(row["id"])
        if stripe_customer_id:
            conn.execute(
                "UPDATE accounts SET stripe_customer_id = ? WHERE id = ?",
                (stripe_customer_id, account_id),
            )
            conn.commit()
        return account_id

    cursor = conn.execute(
        "INSERT INTO accounts (email, stripe_customer_id, created_at) VALUES (?, ?, ?)",
        (email, stripe_customer_id, datetime.now().isoformat()),
    )
    conn.commit()
    return cursor.lastrowid or 0


def upsert_subscription(
    conn: sqlite3.Connection,
    *,
    stripe_subscription_id: str,
    listing_slug: str,
    tier: str,
    status: str,
    account_id: int | None = None,
    stripe_price_id: str = "",
    current_period_end: str | None = None,
) -> None:
    """Insert or update a subscription keyed by the provider's subscription id."""
    conn.execute(
        """
        INSERT INTO subscriptions
            (account_id, listing_slug, stripe_subscription_id, stripe_price_id,
             tier, status, current_period_end)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(stripe_subscription_id) DO UPDATE SET
            account_id = excluded.account_id,
            listing_slug = excluded.listing_slug,
            stripe_price_id = excluded.stripe_price_id,
            tier = excluded.tier,
            status = excluded.status,
            current_period_end = excluded.current_period_end
        """,
        (
            account_id,
            listing_slug,
            stripe_subscription_id,
            stripe_price_id,
            tier,
            status,
            current_period_end,
        ),
    )
    conn.commit()


def get_subscription(conn: sqlite3.Connection, stripe_subscription_id: str) -> sqlite3.Row | None:
    """Return the subscription row for a provider subscription id."""
    return conn.execute(  # type: ignore[no-any-return]
        "SELECT * FROM subscriptions WHERE stripe_subscription_id = ?",
        (stripe_subscription_id,),
    ).fetchone()


def update_subscription_status(
    conn: sqlite3.Connection,
    stripe_subscription_id: str,
    status: str,
    current_period_end: str | None = None,
    *,
    keep_period_end: bool = False,
) -> bool:
    """Update status (and period end). Returns False if the subscription is unknown."""
    if keep_period_end:
        cursor = conn.execute(
            "UPDATE subscriptions SET status = ? WHERE stripe_subscription_id = ?",
            (status, stripe_subscription_id),
        )
    else:
        cursor = conn.execute(
            """
            UPDATE subscriptions SET status = ?, current_period_end = ?
            WHERE stripe_subscription_id = ?
            """,
            (status, current_period_end, stripe_subscription_id),
        )
    conn.commit()
    return cursor.rowcount > 0


def count_active_subscriptions(
    conn: sqlite3.Connection,
    listing_slug: str,
    excluding: str | None = None,
) -> int:
    """Count active subscriptions for a listing, optionally excluding one id."""
    row = conn.execute(
        """
        SELECT COUNT(*) AS n FROM subscriptions
        WHERE listing_slug = ? AND status = 'active' AND stripe_subscription_id != ?
        """,
        (listing_slug, excluding or ""),
    ).fetchone()
    return int(row["n"])


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


def insert_submission(
    conn: sqlite3.Connection,
    payload: dict[str, Any],
    account_id: int | None = None,
) -> int:
    """Record a pending submission. Returns the row ID."""
    cursor = conn.execute(
        "INSERT INTO submissions (account_id, payload, status, created_at) VALUES (?, ?, ?, ?)",
        (account_id, json.dumps(payload), "pending", datetime.now().isoformat()),
    )
    conn.commit()
    return cursor.lastrowid or 0
