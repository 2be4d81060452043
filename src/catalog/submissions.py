"""Tool submissions from the public form: stored for review as drafts."""

import logging
import sqlite3

from pydantic import BaseModel, field_validator

from src.core.db import (
    ensure_unique_slug,
    get_or_create_account,
    insert_listing,
    insert_submission,
    listing_status,
)
from src.core.schemas import Category, Listing
from src.core.text import slugify

logger = logging.getLogger(__name__)


class Submission(BaseModel):
    """A submitted tool awaiting editorial review."""

    name: str
    website_url: str
    category: Category
    short_description: str
    email: str
    github_url: str | None = None

    @field_validator("name", "website_url", "short_description", "email")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("email")
    @classmethod
    def looks_like_email(cls, v: str) -> str:
        if "@" not in v:
            msg = f"invalid email address: {v}"
            raise ValueError(msg)
        return v.lower()


class SubmissionReceipt(BaseModel):
    submission_id: int
    account_id: int
    draft_slug: str
    status: str


def submit_listing(conn: sqlite3.Connection, submission: Submission) -> SubmissionReceipt:
    """Record a submission and create a draft listing in 'pending_review'."""
    account_id = get_or_create_account(conn, submission.email)
    submission_id = insert_submission(conn, submission.model_dump(), account_id)

    slug = ensure_unique_slug(conn, slugify(submission.name) or "tool")
    draft = Listing(
        slug=slug,
        name=submission.name,
        short_description=submission.short_description,
        description=submission.short_description,
        category=submission.category,
        website_url=submission.website_url,
        github_url=submission.github_url or None,
    )
    insert_listing(conn, draft, status="pending_review", account_id=account_id)
    status = listing_status(conn, slug)
    if status is None:
        msg = f"Draft listing '{slug}' was not stored"
        raise ValueError(msg)
    logger.info("Submission %d stored; draft listing '%s' is %s", submission_id, slug, status)

    return SubmissionReceipt(
        submission_id=submission_id, account_id=account_id, draft_slug=slug, status=status,
    )
