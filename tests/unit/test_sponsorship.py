"""Tests for reconciling payment-provider events with listing sponsorship."""

from datetime import date

import pytest

from src.billing.sponsorship import (
    SubscriptionObject,
    apply_event,
    map_status,
)
from src.core.db import fetch_listing, get_subscription, init_db, insert_listing, upsert_subscription
from src.core.schemas import Listing


@pytest.fixture()
def db(tmp_path):  # type: ignore[no-untyped-def]
    conn = init_db(tmp_path / "test.db")
    insert_listing(
        conn,
        Listing(slug="aider", name="Aider", category="agent", last_updated=date(2025, 1, 1)),
    )
    return conn


def _checkout(tier: str = "premium", slug: str = "aider", sub: str = "sub_1", **extra: object) -> dict:
    session: dict[str, object] = {
        "subscription": sub,
        "customer": "cus_1",
        "customer_details": {"email": "owner@example.com"},
        "metadata": {"tool_slug": slug, "tier": tier},
    }
    session.update(extra)
    return {"type": "checkout.session.completed", "data": {"object": session}}


def _sub_event(event_type: str, sub: str = "sub_1", status: str = "active", **extra: object) -> dict:
    obj: dict[str, object] = {"id": sub, "status": status, "current_period_end": 1735689600}
    obj.update(extra)
    return {"type": f"customer.subscription.{event_type}", "data": {"object": obj}}


def _sponsorship(db) -> tuple[str | None, bool]:  # type: ignore[no-untyped-def]
    listing = fetch_listing(db, "aider")
    assert listing is not None
    return listing.sponsored_tier, listing.featured


class TestMapStatus:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("active", "active"),
            ("past_due", "past_due"),
            ("canceled", "canceled"),
            ("unpaid", "canceled"),
            ("incomplete_expired", "canceled"),
        ],
    )
    def test_map(self, status: str, expected: str) -> None:
        assert map_status(status) == expected


class TestCheckoutCompleted:
    def test_premium_sets_tier_and_featured(self, db) -> None:  # type: ignore[no-untyped-def]
        outcome = apply_event(db, _checkout("premium"))
        assert outcome.handled is True
        assert outcome.listing_slug == "aider"
        assert _sponsorship(db) == ("premium", True)

    @pytest.mark.parametrize("tier", ["basic", "category"])
    def test_lower_tiers_not_featured(self, db, tier: str) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout(tier))
        assert _sponsorship(db) == (tier, False)

    def test_records_subscription_and_account(self, db) -> None:  # type: ignore[no-untyped-def]
        subscription = SubscriptionObject(
            id="sub_1",
            status="active",
            current_period_end=1735689600,
            items={"data": [{"price": {"id": "price_premium"}}]},
        )
        apply_event(db, _checkout("premium"), subscription)
        row = get_subscription(db, "sub_1")
        assert row is not None
        assert row["status"] == "active"
        assert row["stripe_price_id"] == "price_premium"
        assert row["current_period_end"] == "2025-01-01T00:00:00+00:00"
        account = db.execute("SELECT email, stripe_customer_id FROM accounts").fetchone()
        assert tuple(account) == ("owner@example.com", "cus_1")

    def test_expanded_subscription_object(self, db) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout("basic", sub={"id": "sub_9"}))  # type: ignore[arg-type]
        assert get_subscription(db, "sub_9") is not None

    def test_replay_is_idempotent(self, db) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout("premium"))
        apply_event(db, _checkout("premium"))
        assert _sponsorship(db) == ("premium", True)
        assert db.execute("SELECT COUNT(*) FROM subscriptions").fetchone()[0] == 1
        assert db.execute("SELECT COUNT(*) FROM accounts").fetchone()[0] == 1

    def test_missing_metadata_ignored(self, db) -> None:  # type: ignore[no-untyped-def]
        outcome = apply_event(db, _checkout(metadata={}))
        assert outcome.handled is False
        assert outcome.detail == "missing metadata"
        assert _sponsorship(db) == (None, False)

    def test_unknown_tier_raises(self, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="Unknown sponsorship tier"):
            apply_event(db, _checkout("gold"))

    def test_unknown_listing(self, db) -> None:  # type: ignore[no-untyped-def]
        outcome = apply_event(db, _checkout("basic", slug="ghost"))
        assert outcome.handled is False
        assert outcome.detail == "unknown listing"


class TestSubscriptionUpdated:
    def test_past_due_downgrades(self, db) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout("premium"))
        outcome = apply_event(db, _sub_event("updated", status="past_due"))
        assert outcome.handled is True
        assert outcome.detail == "past_due"
        assert _sponsorship(db) == (None, False)
        assert get_subscription(db, "sub_1")["status"] == "past_due"

    def test_active_keeps_sponsorship(self, db) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout("category"))
        apply_event(db, _sub_event("updated", status="active"))
        assert _sponsorship(db) == ("category", False)

    def test_unknown_subscription(self, db) -> None:  # type: ignore[no-untyped-def]
        outcome = apply_event(db, _sub_event("updated", sub="sub_missing"))
        assert outcome.handled is False
        assert outcome.detail == "unknown subscription"


class TestSubscriptionDeleted:
    def test_downgrades_when_last(self, db) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout("premium"))
        outcome = apply_event(db, _sub_event("deleted", status="canceled"))
        assert outcome.detail == "downgraded"
        assert _sponsorship(db) == (None, False)
        assert get_subscription(db, "sub_1")["status"] == "canceled"

    def test_keeps_sponsorship_with_other_active(self, db) -> None:  # type: ignore[no-untyped-def]
        apply_event(db, _checkout("premium"))
        upsert_subscription(
            db, stripe_subscription_id="sub_2", listing_slug="aider", tier="premium", status="active",
        )
        outcome = apply_event(db, _sub_event("deleted", status="canceled"))
        assert outcome.detail == "other active subscription remains"
        assert _sponsorship(db) == ("premium", True)

    def test_unknown_subscription(self, db) -> None:  # type: ignore[no-untyped-def]
        outcome = apply_event(db, _sub_event("deleted", sub="sub_missing"))
        assert outcome.detail == "unknown subscription"


class TestUnhandled:
    def test_other_event_types_ignored(self, db) -> None:  # type: ignore[no-untyped-def]
        outcome = apply_event(db, {"type": "invoice.paid", "data": {"object": {}}})
        assert outcome.handled is False
        assert outcome.detail == "unhandled event type"

    def test_malformed_event_raises(self, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError):
            apply_event(db, {"data": {}})
