"""Ingestion pipeline: skip known tools, enrich the rest, insert as published.

Data flow:
  1. Existing check (slug or website URL already in the DB)
  2. LLM enrichment → Listing
  3. Unique slug
  4. Insert (or log only in dry-run)
"""

import logging
import sqlite3
import time
from collections.abc import Callable

import httpx

from src.core.config import IngestConfig
from src.core.db import ensure_unique_slug, insert_listing, listing_exists
from src.core.text import slugify
from src.ingest.discovery import Candidate
from src.ingest.enricher import enrich_candidate
from src.ingest.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class IngestSummary:
    """Counts for one ingestion run."""

    def __init__(self, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self.inserted: list[str] = []
        self.existing = 0
        self.skipped = 0
        self.errors = 0

    def __repr__(self) -> str:
        return (
            f"IngestSummary(inserted={len(self.inserted)}, existing={self.existing}, "
            f"skipped={self.skipped}, errors={self.errors}, dry_run={self.dry_run})"
        )


def select_new_candidates(conn: sqlite3.Connection, candidates: list[Candidate]) -> list[Candidate]:
    """Drop candidates already in the directory by slug or website URL."""
    fresh: list[Candidate] = []
    for c in candidates:
        if listing_exists(conn, slugify(c.name), c.website_url):
            logger.info("Skip (exists): %s", c.name)
        else:
            fresh.append(c)
    return fresh


def run_ingestion(
    conn: sqlite3.Connection,
    candidates: list[Candidate],
    provider: LLMProvider,
    config: IngestConfig,
    *,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> IngestSummary:
    """Enrich and insert new candidates. One failure never stops the run."""
    summary = IngestSummary(dry_run=config.dry_run)

    fresh = select_new_candidates(conn, candidates)
    summary.existing = len(candidates) - len(fresh)
    logger.info("%d new candidates to enrich", len(fresh))

    for index, candidate in enumerate(fresh):
        if index and config.delay_seconds:
            sleep(config.delay_seconds)

        logger.info("Processing: %s", candidate.name)
        try:
            listing = enrich_candidate(
                candidate,
                provider,
                model=config.llm_model,
                timeout=config.fetch_timeout_seconds,
                content_limit=config.content_char_limit,
                client=client,
            )
        except Exception:
            logger.warning("Error enriching %s", candidate.name, exc_info=True)
            summary.errors += 1
            continue

        if listing is None:
            summary.skipped += 1
            continue

        slug = ensure_unique_slug(conn, listing.slug)
        if slug != listing.slug:
            listing = listing.model_copy(update={"slug": slug})

        if config.dry_run:
            logger.info(
                "[DRY RUN] Would insert: %s (%s) category=%s pricing=%s maturity=%s",
                listing.name, listing.slug, listing.category, listing.pricing_model, listing.maturity,
            )
            summary.inserted.append(listing.slug)
            continue

        if insert_listing(conn, listing, status="published"):
            logger.info("Inserted: %s (%s)", listing.name, listing.slug)
            summary.inserted.append(listing.slug)
        else:
            logger.warning("DB insert conflict for %s (%s)", listing.name, listing.slug)
            summary.errors += 1

    logger.info("Ingestion complete: %s", summary)
    return summary
