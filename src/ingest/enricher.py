"""LLM enrichment: turn a candidate (name + URLs) into a full Listing."""

import logging
from datetime import date
from typing import Any

import httpx

from src.core.schemas import Listing
from src.core.text import slugify
from src.ingest.discovery import Candidate
from src.ingest.fetcher import fetch_github_stars, fetch_text, readme_urls, strip_html
from src.ingest.llm.base import ENRICH_SYSTEM_PROMPT, LLMProvider, parse_json_response

logger = logging.getLogger(__name__)

VALID_CATEGORIES = ("agent", "mcp-server", "framework", "infra", "platform")
VALID_PRICING = ("Free", "Open Source", "Freemium", "Paid", "Enterprise")
VALID_COMPLEXITY = ("Low", "Medium", "High")
VALID_MATURITY = ("Early", "Growing", "Mature")

# Field → max items kept from the LLM's list output.
_LIST_LIMITS = {
    "subcategories": 5,
    "use_cases": 5,
    "integrations": 10,
    "pros": 5,
    "cons": 5,
}


def fetch_content(
    candidate: Candidate,
    *,
    timeout: float = 10.0,
    limit: int = 8000,
    client: httpx.Client | None = None,
) -> str:
    """README text if the repo has one, else stripped website text, else ''."""
    if candidate.github_url:
        for url in readme_urls(candidate.github_url):
            readme = fetch_text(url, timeout=timeout, limit=limit, client=client)
            if readme:
                return readme

    if candidate.website_url:
        html = fetch_text(candidate.website_url, timeout=timeout, limit=limit, client=client)
        if html:
            return strip_html(html)
    return ""


def build_user_prompt(candidate: Candidate, content: str, stars: int | None) -> str:
    return (
        f"Tool: {candidate.name}\n"
        f"Website: {candidate.website_url}\n"
        f"GitHub: {candidate.github_url or 'N/A'}\n"
        f"GitHub Stars: {stars if stars is not None else 'Unknown'}\n\n"
        f"--- Content ---\n{content}"
    )


def _str_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v][:limit]


def listing_from_response(
    data: dict[str, Any],
    candidate: Candidate,
    stars: int | None,
    today: date | None = None,
) -> Listing | None:
    """Validate an LLM profile and build a Listing; None if it is unusable."""
    category = data.get("category")
    pricing_model = data.get("pricing_model")
    complexity = data.get("setup_complexity")
    maturity = data.get("maturity")

    if (
        category not in VALID_CATEGORIES
        or pricing_model not in VALID_PRICING
        or complexity not in VALID_COMPLEXITY
        or maturity not in VALID_MATURITY
    ):
        logger.info(
            "Invalid enums for %s: category=%s pricing=%s complexity=%s maturity=%s",
            candidate.name, category, pricing_model, complexity, maturity,
        )
        return None

    short_desc = str(data.get("short_description") or "").strip()
    desc = str(data.get("description") or "").strip()
    if not short_desc or not desc:
        logger.info("Missing description for %s", candidate.name)
        return None

    name = str(data.get("name") or "").strip() or candidate.name
    lists = {field: _str_list(data.get(field), n) for field, n in _LIST_LIMITS.items()}

    return Listing(
        slug=slugify(name) or slugify(candidate.name),
        name=name,
        short_description=short_desc[:200],
        description=desc[:1000],
        category=category,
        pricing_model=pricing_model,
        pricing=data.get("pricing") or None,
        github_url=candidate.github_url,
        github_stars=stars,
        website_url=candidate.website_url,
        docs_url=data.get("docs_url") or None,
        featured=False,
        sponsored_tier=None,
        last_updated=today or date.today(),
        setup_complexity=complexity,
        maturity=maturity,
        **lists,
    )


def enrich_candidate(
    candidate: Candidate,
    provider: LLMProvider,
    *,
    model: str | None = None,
    timeout: float = 10.0,
    content_limit: int = 8000,
    client: httpx.Client | None = None,
) -> Listing | None:
    """Fetch a candidate's content and ask the LLM for a full profile.

    Returns None when there is no content or the LLM output fails
    validation. Provider errors (missing key, SDK, API failure) propagate.
    """
    content = fetch_content(candidate, timeout=timeout, limit=content_limit, client=client)
    if not content:
        logger.info("No content for %s", candidate.name)
        return None

    stars = (
        fetch_github_stars(candidate.github_url, timeout=timeout, client=client)
        if candidate.github_url
        else None
    )

    raw = provider.complete(
        build_user_prompt(candidate, content, stars),
        model=model,
        system=ENRICH_SYSTEM_PROMPT,
    )
    try:
        data = parse_json_response(raw)
    except ValueError:
        logger.warning("Unparseable enrichment response for %s", candidate.name)
        return None

    return listing_from_response(data, candidate, stars)
