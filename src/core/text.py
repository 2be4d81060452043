"""Small text helpers shared by the store, ingestion and submissions."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase, collapse non-alphanumerics to '-', strip leading/trailing '-'."""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def format_stars(stars: int) -> str:
    """Render a GitHub star count the way cards show it (1.2K, 15K)."""
    if stars >= 1000:
        if stars >= 10000:
            return f"{stars / 1000:.0f}K"
        return f"{stars / 1000:.1f}K"
    return str(stars)
