"""CLI entry point for the AI tool directory."""

import argparse
import json
import logging
import sys
from pathlib import Path

from src.core.config import Settings
from src.core.db import init_db
from src.core.schemas import CATEGORY_LABELS, Listing
from src.core.text import format_stars

DEFAULT_CONFIG = "config/settings.yaml"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="AI tool directory - search, seed, ingest and sponsorship tools",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- search ---
    search_parser = subparsers.add_parser("search", help="Search listings")
    search_parser.add_argument("query", nargs="?", default="", help="Free-text query (empty lists all)")
    search_parser.add_argument("--category", help="Only show this category")
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON")

    # --- category ---
    category_parser = subparsers.add_parser("category", help="Show a curated category page")
    category_parser.add_argument("slug", help="Category page slug")

    # --- compare ---
    compare_parser = subparsers.add_parser("compare", help="Show an \"A vs B\" comparison")
    compare_parser.add_argument("slug", help="Comparison slug, e.g. langchain-vs-llamaindex")

    # --- platform ---
    platform_parser = subparsers.add_parser("platform", help="List the MCP servers for a platform")
    platform_parser.add_argument("slug", help="MCP platform slug")

    # --- stats ---
    subparsers.add_parser("stats", help="Show directory totals")

    # --- seed ---
    seed_parser = subparsers.add_parser("seed", help="Load the static listings into sqlite")
    seed_parser.add_argument(
        "--no-sponsorship",
        action="store_true",
        help="Do not copy sponsorship tiers from the static data",
    )

    # --- discover ---
    discover_parser = subparsers.add_parser("discover", help="Discover candidate tools")
    discover_parser.add_argument("--provider", help="LLM provider override")
    discover_parser.add_argument("--output", help="Write candidates JSON to this file")

    # --- ingest ---
    ingest_parser = subparsers.add_parser("ingest", help="Enrich and insert candidate tools")
    ingest_parser.add_argument("--provider", help="LLM provider override")
    ingest_parser.add_argument(
        "--candidates",
        help="Candidates JSON from `discover` (default: run discovery first)",
    )
    ingest_parser.add_argument("--dry-run", action="store_true", help="Log only, no DB insert")

    # --- apply-event ---
    event_parser = subparsers.add_parser(
        "apply-event",
        help="Apply a decoded payment-provider event (JSON file) to the database",
    )
    event_parser.add_argument("path", help="Path to the event JSON")

    # --- submit ---
    submit_parser = subparsers.add_parser("submit", help="Submit a tool for review")
    submit_parser.add_argument("--name", required=True)
    submit_parser.add_argument("--website-url", required=True)
    submit_parser.add_argument("--category", required=True, choices=sorted(CATEGORY_LABELS))
    submit_parser.add_argument("--short-description", required=True)
    submit_parser.add_argument("--email", required=True)
    submit_parser.add_argument("--github-url")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings; a missing default config means built-in defaults."""
    if path == DEFAULT_CONFIG and not Path(path).exists():
        return Settings()
    return Settings.from_yaml(path)


def _print_listing(rank: int, listing: Listing) -> None:
    badges = []
    if listing.sponsored_tier:
        badges.append(listing.sponsored_tier)
    if listing.featured and "featured" not in badges:
        badges.append("featured")
    badge = f" [{', '.join(badges)}]" if badges else ""
    label = CATEGORY_LABELS.get(listing.category, listing.category)
    stars = f", {format_stars(listing.github_stars)} stars" if listing.github_stars else ""
    print(f"{rank:>3}. {listing.name}{badge} ({label}{stars})")
    print(f"     {listing.short_description}")


def cmd_search(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.store import build_store, search_store

    store = build_store(settings)
    results = search_store(store, args.query, args.category, settings.ranking)

    if args.json:
        print(json.dumps([item.model_dump(mode="json") for item in results.listings], indent=2))
        return

    title = f'Results for "{results.query}"' if results.query else "All Tools"
    print(f"{title}: {len(results.listings)} tool{'s' if len(results.listings) != 1 else ''} found")
    facets = ", ".join(
        f"{CATEGORY_LABELS.get(cat, cat)} ({count})" for cat, count in results.counts.items()
    )
    print(f"All ({len(results.ranked)}){', ' + facets if facets else ''}")
    for rank, listing in enumerate(results.listings, start=1):
        _print_listing(rank, listing)


def cmd_category(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.store import build_store

    store = build_store(settings)
    page = store.category_page(args.slug)
    if page is None:
        msg = f"Unknown category page: {args.slug}"
        raise ValueError(msg)

    listings = store.category_page_listings(args.slug)
    print(page.title)
    print(page.description)
    print(f"{len(listings)} tools")
    for rank, listing in enumerate(listings, start=1):
        _print_listing(rank, listing)


def cmd_compare(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.store import build_store

    store = build_store(settings)
    comparison = store.comparison(args.slug)
    if comparison is None:
        msg = f"Unknown comparison: {args.slug}"
        raise ValueError(msg)

    a, b = comparison.tool_a, comparison.tool_b
    print(f"{a.name} vs {b.name}")
    width = max([len("Feature"), *(len(f.name) for f in comparison.page.features)])
    print(f"  {'Feature':<{width}}  {a.name} | {b.name}")
    for feature in comparison.page.features:
        print(f"  {feature.name:<{width}}  {feature.tool_a} | {feature.tool_b}")
    if comparison.page.verdict:
        print(f"Verdict: {comparison.page.verdict}")


def cmd_platform(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.store import build_store

    store = build_store(settings)
    platform = store.mcp_platform(args.slug)
    if platform is None:
        msg = f"Unknown MCP platform: {args.slug}"
        raise ValueError(msg)

    listings = store.mcp_platform_listings(args.slug)
    print(platform.name)
    print(platform.description)
    for rank, listing in enumerate(listings, start=1):
        _print_listing(rank, listing)


def cmd_stats(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.store import build_store

    stats = build_store(settings).stats()
    print(f"Tools:        {stats.total_tools}")
    print(f"Categories:   {stats.total_categories}")
    print(f"Comparisons:  {stats.total_comparisons}")
    print(f"MCP servers:  {stats.total_mcp_servers}")


def cmd_seed(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.seed import seed_database
    from src.catalog.store import StaticContentStore

    static = StaticContentStore.from_yaml(settings.store.listings_path, settings.store.categories_path)
    conn = init_db(settings.database.path)
    try:
        count = seed_database(conn, static, with_sponsorship=not args.no_sponsorship)
    finally:
        conn.close()
    print(f"Seeded {count} listings into {settings.database.path}")


def cmd_discover(args: argparse.Namespace, settings: Settings) -> None:
    from src.ingest.discovery import candidates_to_json, discover_candidates
    from src.ingest.llm import get_provider

    provider = get_provider(args.provider or settings.ingest.llm_provider)
    candidates = discover_candidates(settings.ingest, provider)
    output = candidates_to_json(candidates)
    if args.output:
        Path(args.output).write_text(output)
        print(f"{len(candidates)} candidates written to {args.output}")
    else:
        print(output)


def cmd_ingest(args: argparse.Namespace, settings: Settings) -> None:
    from src.ingest.discovery import Candidate, discover_candidates
    from src.ingest.llm import get_provider
    from src.ingest.pipeline import run_ingestion

    config = settings.ingest
    if args.dry_run:
        config = config.model_copy(update={"dry_run": True})
    provider = get_provider(args.provider or config.llm_provider)

    if args.candidates:
        raw = json.loads(Path(args.candidates).read_text())
        candidates = [Candidate.model_validate(item) for item in raw]
    else:
        candidates = discover_candidates(config, provider)

    if not candidates:
        print("No candidates found.")
        return

    conn = init_db(settings.database.path)
    try:
        summary = run_ingestion(conn, candidates, provider, config)
    finally:
        conn.close()

    mode = "DRY RUN" if summary.dry_run else "LIVE"
    print(f"Pipeline complete ({mode}):")
    print(f"  Inserted: {len(summary.inserted)}")
    print(f"  Existing: {summary.existing}")
    print(f"  Skipped:  {summary.skipped}")
    print(f"  Errors:   {summary.errors}")


def cmd_apply_event(args: argparse.Namespace, settings: Settings) -> None:
    from src.billing.sponsorship import apply_event

    event = json.loads(Path(args.path).read_text())
    conn = init_db(settings.database.path)
    try:
        outcome = apply_event(conn, event)
    finally:
        conn.close()
    status = "handled" if outcome.handled else "ignored"
    print(f"{outcome.event_type}: {status} ({outcome.detail})")


def cmd_submit(args: argparse.Namespace, settings: Settings) -> None:
    from src.catalog.submissions import Submission, submit_listing

    submission = Submission(
        name=args.name,
        website_url=args.website_url,
        category=args.category,
        short_description=args.short_description,
        email=args.email,
        github_url=args.github_url,
    )
    conn = init_db(settings.database.path)
    try:
        receipt = submit_listing(conn, submission)
    finally:
        conn.close()
    print(f"Submission received (#{receipt.submission_id}). Draft '{receipt.draft_slug}' is {receipt.status.replace('_', ' ')}.")


_COMMANDS = {
    "search": cmd_search,
    "category": cmd_category,
    "compare": cmd_compare,
    "platform": cmd_platform,
    "stats": cmd_stats,
    "seed": cmd_seed,
    "discover": cmd_discover,
    "ingest": cmd_ingest,
    "apply-event": cmd_apply_event,
    "submit": cmd_submit,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        _COMMANDS[args.command](args, settings)
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
