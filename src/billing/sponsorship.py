"""Reconcile payment-provider subscription events with listing sponsorship.

Events arrive already verified and decoded (the HTTP layer owns signature
checks). Each handler is idempotent: replaying an event leaves the
database in the same state.

Handled event types:
  checkout.session.completed     : activate a tier on a listing
  customer.subscription.updated  : record status; downgrade if not active
  customer.subscription.deleted  : cancel; downgrade if no other active sub
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from src.core.db import (
    count_active_subscriptions,
    get_or_create_account,
    get_subscription,
    set_sponsorship,
    update_subscription_status,
    upsert_subscription,
)

logger = logging.getLogger(__name__)

FEATURING_TIERS = ("premium", "featured")
SPONSOR_TIERS = ("basic", "category", "premium", "featured")


class CheckoutSession(BaseModel):
    """The fields of a completed checkout session we act on."""

    subscription: str | dict[str, Any] | None = None
    customer: str | None = None
    customer_email: str | None = None
    customer_details: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def subscription_id(self) -> str | None:
        if isinstance(self.subscription, dict):
            return self.subscription.get("id")
        return self.subscription

    @property
    def email(self) -> str:
        return self.customer_details.get("email") or self.customer_email or ""


class SubscriptionObject(BaseModel):
    """The fields of a subscription object we act on."""

    id: str
    status: str = ""
    current_period_end: int | None = None
    items: dict[str, Any] = Field(default_factory=dict)

    @property
    def price_id(self) -> str:
        data = self.items.get("data") or []
        if not data:
            return ""
        return str((data[0].get("price") or {}).get("id", ""))


class ProviderEvent(BaseModel):
    """A decoded webhook event: type plus its data.object payload."""

    type: str
    data: dict[str, Any]

    @property
    def object(self) -> dict[str, Any]:
        return self.data.get("object") or {}


class ReconcileOutcome(BaseModel):
    """What a single event did."""

    event_type: str
    handled: bool = False
    listing_slug: str | None = None
    detail: str = ""


def map_status(provider_status: str) -> str:
    """Collapse provider subscription statuses to active / past_due / canceled."""
    if provider_status == "active":
        return "active"
    if provider_status == "past_due":
        return "past_due"
    return "canceled"


def _period_end(epoch: int | None) -> str | None:
    if not epoch:
        return None
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()


def apply_event(
    conn: sqlite3.Connection,
    event: ProviderEvent | dict[str, Any],
    subscription: SubscriptionObject | None = None,
) -> ReconcileOutcome:
    """Apply one provider event to the database.

    Args:
        conn: Open database connection.
        event: Decoded event (model or raw dict).
        subscription: For checkout events, the subscription the session
            created, if the caller retrieved it; supplies price and period end.

    Raises:
        ValueError: If the event payload is malformed.
    """
    if not isinstance(event, ProviderEvent):
        event = ProviderEvent.model_validate(event)

    if event.type == "checkout.session.completed":
        session = CheckoutSession.model_validate(event.object)
        return handle_checkout_completed(conn, session, subscription)
    if event.type == "customer.subscription.updated":
        return handle_subscription_updated(conn, SubscriptionObject.model_validate(event.object))
    if event.type == "customer.subscription.deleted":
        return handle_subscription_deleted(conn, SubscriptionObject.model_validate(event.object))

    logger.debug("Ignoring unhandled event type '%s'", event.type)
    return ReconcileOutcome(event_type=event.type, detail="unhandled event type")


def handle_checkout_completed(
    conn: sqlite3.Connection,
    session: CheckoutSession,
    subscription: SubscriptionObject | None = None,
) -> ReconcileOutcome:
    event_type = "checkout.session.completed"
    slug = session.metadata.get("tool_slug")
    tier = session.metadata.get("tier")
    sub_id = session.subscription_id

    if not slug or not tier or not sub_id:
        logger.info("Checkout session without tool_slug/tier/subscription, ignoring")
        return ReconcileOutcome(event_type=event_type, detail="missing metadata")
    if tier not in SPONSOR_TIERS:
        msg = f"Unknown sponsorship tier '{tier}'"
        raise ValueError(msg)

    account_id: int | None = None
    if session.email:
        account_id = get_or_create_account(conn, session.email, session.customer)

    if account_id is not None:
        upsert_subscription(
            conn,
            stripe_subscription_id=sub_id,
            listing_slug=slug,
            tier=tier,
            status="active",
            account_id=account_id,
            stripe_price_id=subscription.price_id if subscription else "",
            current_period_end=_period_end(subscription.current_period_end) if subscription else None,
        )

    if not set_sponsorship(conn, slug, tier, tier in FEATURING_TIERS, account_id):
        logger.warning("Checkout for unknown listing '%s'", slug)
        return ReconcileOutcome(event_type=event_type, listing_slug=slug, detail="unknown listing")

    logger.info("Activated '%s' sponsorship on '%s'", tier, slug)
    return ReconcileOutcome(event_type=event_type, handled=True, listing_slug=slug, detail=tier)


def handle_subscription_updated(
    conn: sqlite3.Connection,
    subscription: SubscriptionObject,
) -> ReconcileOutcome:
    event_type = "customer.subscription.updated"
    status = map_status(subscription.status)

    if not update_subscription_status(
        conn, subscription.id, status, _period_end(subscription.current_period_end)
    ):
        logger.info("Update for unknown subscription '%s', ignoring", subscription.id)
        return ReconcileOutcome(event_type=event_type, detail="unknown subscription")

    record = get_subscription(conn, subscription.id)
    slug = record["listing_slug"] if record is not None else None
    if status != "active" and slug:
        set_sponsorship(conn, slug, None, False)
        logger.info("Subscription '%s' is %s; removed sponsorship from '%s'", subscription.id, status, slug)

    return ReconcileOutcome(event_type=event_type, handled=True, listing_slug=slug, detail=status)


def handle_subscription_deleted(
    conn: sqlite3.Connection,
    subscription: SubscriptionObject,
) -> ReconcileOutcome:
    event_type = "customer.subscription.deleted"
    record = get_subscription(conn, subscription.id)
    if record is None:
        logger.info("Deletion for unknown subscription '%s', ignoring", subscription.id)
        return ReconcileOutcome(event_type=event_type, detail="unknown subscription")

    update_subscription_status(conn, subscription.id, "canceled", keep_period_end=True)
    slug = record["listing_slug"]

    if count_active_subscriptions(conn, slug, excluding=subscription.id) == 0:
        set_sponsorship(conn, slug, None, False)
        logger.info("Subscription '%s' deleted; removed sponsorship from '%s'", subscription.id, slug)
        detail = "downgraded"
    else:
        detail = "other active subscription remains"

    return ReconcileOutcome(event_type=event_type, handled=True, listing_slug=slug, detail=detail)
