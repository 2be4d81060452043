"""Candidate discovery: awesome-lists and GitHub topics, curated by an LLM.

Data flow:
  1. Fetch awesome-* READMEs, extract GitHub repo URLs
  2. GitHub topic search
  3. Dedupe by normalized URL
  4. LLM relevance filter in batches
"""

import json
import logging
import re
import time
from collections.abc import Callable

import httpx
from pydantic import BaseModel

from src.core.config import IngestConfig
from src.ingest.fetcher import fetch_text, search_github_topic
from src.ingest.llm.base import LLMProvider, parse_json_response

logger = logging.getLogger(__name__)

_GITHUB_URL_RE = re.compile(r"https://github\.com/[a-zA-Z0-9._-]+/[a-zA-Z0-9._-]+")
_TRAILING_PUNCT = ").,;:'\""

CURATOR_SYSTEM_PROMPT = (
    "You are a curator for a directory of AI developer tools. You evaluate "
    "whether GitHub repositories or tools are AI agents, MCP servers, agent "
    "frameworks, LLM tools, vector databases, AI inference platforms, or other "
    "agentic developer tools.\n\n"
    "Given a numbered list of tool names and URLs, return ONLY a JSON object:\n"
    '{"results": [{"index": 1, "relevant": true}]}\n\n'
    "Mark relevant=true only for AI agents (autonomous, coding, multi-agent), "
    "MCP servers, LLM application frameworks, vector databases for AI, AI "
    "inference platforms, AI developer tools and SDKs, and AI code assistants.\n"
    "Mark relevant=false for general ML/DL libraries, datasets or model "
    "weights, tutorials and documentation-only repos, non-AI tools, and "
    "duplicate or deprecated projects."
)


class Candidate(BaseModel):
    """A tool worth enriching: at least a name and a URL."""

    name: str
    website_url: str
    github_url: str | None = None
    source: str = "unknown"


def extract_github_urls(markdown: str) -> list[str]:
    """Extract unique GitHub repo URLs from markdown, in order of appearance."""
    seen: dict[str, None] = {}
    for match in _GITHUB_URL_RE.findall(markdown):
        seen.setdefault(match.rstrip(_TRAILING_PUNCT), None)
    return list(seen)


def repo_name_from_url(url: str) -> str:
    """'https://github.com/owner/repo' → 'repo' (falls back to owner, then url)."""
    parts = url.replace("https://github.com/", "").split("/")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return parts[0] or url


def _normalize_url(url: str) -> str:
    return url.lower().rstrip("/")


def dedupe_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Drop candidates whose URL repeats one already seen (case/slash-insensitive)."""
    seen: set[str] = set()
    result: list[Candidate] = []
    for c in candidates:
        key = _normalize_url(c.github_url or c.website_url)
        if key in seen:
            continue
        seen.add(key)
        result.append(c)
    deduped = len(candidates) - len(result)
    if deduped:
        logger.debug("dedupe_candidates: removed %d duplicates", deduped)
    return result


def _parse_relevance(raw_text: str, size: int) -> list[bool]:
    """Map an LLM relevance response onto batch positions; bad output → all False."""
    try:
        data = parse_json_response(raw_text)
    except ValueError:
        logger.warning("Unparseable relevance response, dropping batch of %d", size)
        return [False] * size

    flags = [False] * size
    for entry in data.get("results") or []:
        if not isinstance(entry, dict):
            continue
        index = entry.get("index")
        if isinstance(index, int) and 1 <= index <= size:
            flags[index - 1] = bool(entry.get("relevant", False))
    return flags


def filter_relevant(
    candidates: list[Candidate],
    provider: LLMProvider,
    *,
    model: str | None = None,
    batch_size: int = 20,
    delay_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Candidate]:
    """Keep the candidates the LLM marks as relevant AI tools."""
    relevant: list[Candidate] = []
    for start in range(0, len(candidates), batch_size):
        if start and delay_seconds:
            sleep(delay_seconds)
        batch = candidates[start:start + batch_size]
        item_list = "\n".join(
            f"{i}. {c.name}: {c.github_url or c.website_url}" for i, c in enumerate(batch, start=1)
        )
        try:
            raw = provider.complete(item_list, model=model, system=CURATOR_SYSTEM_PROMPT)
            flags = _parse_relevance(raw, len(batch))
        except Exception:
            logger.warning("Relevance filter failed for batch at %d", start, exc_info=True)
            flags = [False] * len(batch)

        kept = [c for c, ok in zip(batch, flags) if ok]
        relevant.extend(kept)
        logger.info("Batch %d: %d of %d relevant", start // batch_size + 1, len(kept), len(batch))
    return relevant


def discover_candidates(
    config: IngestConfig,
    provider: LLMProvider,
    *,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Candidate]:
    """Gather, dedupe, and LLM-filter candidates from the configured sources."""
    gathered: list[Candidate] = []

    for list_url in config.awesome_lists:
        markdown = fetch_text(list_url, timeout=config.fetch_timeout_seconds, limit=None, client=client)
        if not markdown:
            logger.warning("Failed to fetch awesome list %s", list_url)
            continue
        urls = extract_github_urls(markdown)
        logger.info("%s: %d URLs", list_url, len(urls))
        gathered.extend(
            Candidate(name=repo_name_from_url(u), website_url=u, github_url=u, source=list_url)
            for u in urls
        )

    for query in config.github_topics:
        urls = search_github_topic(query, timeout=config.fetch_timeout_seconds, client=client)
        logger.info("%s: %d repos", query, len(urls))
        gathered.extend(
            Candidate(name=repo_name_from_url(u), website_url=u, github_url=u, source=query)
            for u in urls
        )

    unique = dedupe_candidates(gathered)
    logger.info("%d unique candidate URLs, filtering with LLM", len(unique))
    return filter_relevant(
        unique,
        provider,
        model=config.llm_model,
        batch_size=config.batch_size,
        delay_seconds=config.delay_seconds,
        sleep=sleep,
    )


def candidates_to_json(candidates: list[Candidate]) -> str:
    """Serialize candidates for review or for a later ingest run."""
    return json.dumps([c.model_dump() for c in candidates], indent=2)
