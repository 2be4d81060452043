"""HTTP fetching for ingestion: READMEs, websites, and GitHub metadata.

All fetchers are best-effort: transport errors and non-2xx responses are
logged and reported as None so one dead link never stops a run.
"""

import logging
import os
import re

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"

_REPO_RE = re.compile(r"github\.com/([^/\s]+)/([^/\s#?]+)")


def _client(client: httpx.Client | None, timeout: float) -> httpx.Client:
    return client or httpx.Client(timeout=httpx.Timeout(timeout, connect=5.0), follow_redirects=True)


def fetch_text(
    url: str,
    *,
    timeout: float = 10.0,
    limit: int | None = 8000,
    client: httpx.Client | None = None,
) -> str | None:
    """GET a URL and return its body text (truncated to limit), or None."""
    owned = client is None
    http = _client(client, timeout)
    try:
        response = http.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.debug("fetch_text(%s) failed: %s", url, e)
        return None
    finally:
        if owned:
            http.close()

    text = response.text
    return text[:limit] if limit is not None else text


def parse_repo(github_url: str) -> tuple[str, str] | None:
    """Return (owner, repo) from a GitHub URL, or None."""
    match = _REPO_RE.search(github_url)
    if not match:
        return None
    owner, repo = match.groups()
    return owner, repo.removesuffix(".git")


def readme_urls(github_url: str) -> list[str]:
    """Raw README URLs to try for a repo, main branch first, then master."""
    repo = parse_repo(github_url)
    if repo is None:
        return []
    owner, name = repo
    base = f"https://raw.githubusercontent.com/{owner}/{name}"
    return [f"{base}/main/README.md", f"{base}/master/README.md"]


def strip_html(html: str) -> str:
    """Visible page text: scripts, styles and noscript blocks removed, entities decoded."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return " ".join(soup.get_text(" ", strip=True).split())


def _github_headers(token: str | None) -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    token = token if token is not None else os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def fetch_github_stars(
    github_url: str,
    *,
    token: str | None = None,
    timeout: float = 10.0,
    client: httpx.Client | None = None,
) -> int | None:
    """Return the repo's stargazer count, or None if unavailable."""
    repo = parse_repo(github_url)
    if repo is None:
        return None
    owner, name = repo

    owned = client is None
    http = _client(client, timeout)
    try:
        response = http.get(f"{GITHUB_API}/repos/{owner}/{name}", headers=_github_headers(token))
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug("GitHub stars lookup for %s/%s failed: %s", owner, name, e)
        return None
    finally:
        if owned:
            http.close()

    stars = data.get("stargazers_count")
    return stars if isinstance(stars, int) else None


def search_github_topic(
    query: str,
    *,
    token: str | None = None,
    timeout: float = 10.0,
    per_page: int = 30,
    client: httpx.Client | None = None,
) -> list[str]:
    """Search repositories (e.g. 'topic:mcp-server') by stars; return html URLs."""
    owned = client is None
    http = _client(client, timeout)
    try:
        response = http.get(
            f"{GITHUB_API}/search/repositories",
            params={"q": query, "sort": "stars", "per_page": per_page},
            headers=_github_headers(token),
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("GitHub topic search '%s' failed: %s", query, e)
        return []
    finally:
        if owned:
            http.close()

    return [item["html_url"] for item in data.get("items", []) if item.get("html_url")]
