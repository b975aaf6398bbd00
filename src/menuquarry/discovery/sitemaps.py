"""
Sitemap-based candidate discovery.

Sitemaps are located through ``robots.txt`` directives, falling back to the
conventional ``/sitemap.xml`` and ``/sitemap_index.xml`` locations. Sitemap
indexes are followed recursively up to a depth cap, with a visited set so that
self-referencing indexes terminate.
"""

from __future__ import annotations

import asyncio
import gzip
from typing import Iterable, List, Optional, Set
from urllib.parse import urlparse

import structlog
from bs4 import BeautifulSoup

from menuquarry.config.config import DiscoveryConfig, FetchConfig
from menuquarry.errors import ExtractionError, FetchError
from menuquarry.protocols import Fetcher, Outcome

logger = structlog.get_logger(__name__)

FALLBACK_SITEMAP_PATHS = ("/sitemap.xml", "/sitemap_index.xml")
GZIP_MAGIC = b"\x1f\x8b"


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def parse_sitemap_directives(robots_txt: str) -> List[str]:
    """Return the ``Sitemap:`` URLs declared in a robots.txt body, in order."""
    sitemaps: List[str] = []
    for line in robots_txt.splitlines():
        stripped = line.strip()
        if stripped.lower().startswith("sitemap:"):
            value = stripped[len("sitemap:") :].strip()
            if value and value not in sitemaps:
                sitemaps.append(value)
    return sitemaps


def _matches_keywords(url: str, keywords: Iterable[str]) -> bool:
    lowered = url.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def _decode_sitemap_body(url: str, body: bytes) -> bytes:
    if body.startswith(GZIP_MAGIC) or urlparse(url).path.lower().endswith(".gz"):
        try:
            return gzip.decompress(body)
        except (OSError, EOFError):
            # Servers sometimes send already-inflated bytes under a .gz name.
            return body
    return body


def _locs(soup: BeautifulSoup, entry_tag: str) -> List[str]:
    """Text of each non-empty ``<entry_tag><loc>`` in document order."""
    locs: List[str] = []
    for entry in soup.find_all(entry_tag):
        loc = entry.find("loc")
        if loc is not None:
            text = loc.get_text(strip=True)
            if text:
                locs.append(text)
    return locs


class SitemapDiscoverer:
    """Finds menu-like URLs listed in a site's sitemaps."""

    def __init__(self, fetcher: Fetcher, config: DiscoveryConfig, fetch_config: FetchConfig) -> None:
        self.fetcher = fetcher
        self.config = config
        self.fetch_config = fetch_config

    async def find_sitemap_urls(self, base_url: str) -> Outcome[List[str]]:
        """Sitemaps declared in robots.txt, or the conventional fallbacks."""
        origin = origin_of(base_url)
        robots_url = f"{origin}/robots.txt"
        outcome: Outcome[List[str]] = Outcome(value=[])

        try:
            response = await self.fetcher.fetch(robots_url, timeout=self.fetch_config.robots_timeout)
            outcome.value = parse_sitemap_directives(response.text())
        except FetchError as e:
            logger.debug("No robots.txt, using fallback sitemap paths", robots_url=robots_url, error=str(e))
            outcome.errors.append(e)

        if not outcome.value:
            outcome.value = [f"{origin}{path}" for path in FALLBACK_SITEMAP_PATHS]
        return outcome

    async def urls_from_sitemap(
        self,
        sitemap_url: str,
        *,
        depth: int = 0,
        visited: Optional[Set[str]] = None,
    ) -> Outcome[Set[str]]:
        """
        Collect keyword-matching ``<url><loc>`` entries from one sitemap.

        Sitemap indexes recurse into their children concurrently. Fetch and
        parse failures are recorded in the outcome, never raised.
        """
        visited = visited if visited is not None else set()
        outcome: Outcome[Set[str]] = Outcome(value=set())

        if sitemap_url in visited:
            return outcome
        if depth > self.config.max_sitemap_depth:
            logger.debug("Sitemap depth cap reached", sitemap_url=sitemap_url, depth=depth)
            return outcome
        visited.add(sitemap_url)

        try:
            response = await self.fetcher.fetch(sitemap_url, timeout=self.fetch_config.sitemap_timeout)
        except ExtractionError as e:
            logger.debug("Failed to fetch sitemap", sitemap_url=sitemap_url, error=str(e))
            outcome.errors.append(e)
            return outcome

        try:
            body = _decode_sitemap_body(sitemap_url, response.body)
            soup = await asyncio.to_thread(BeautifulSoup, body, "xml")
        except Exception as e:
            logger.warning("Failed to parse sitemap", sitemap_url=sitemap_url, error=str(e))
            outcome.errors.append(e)
            return outcome

        if soup.find("sitemapindex") is not None:
            children = _locs(soup, "sitemap")
            logger.debug("Following sitemap index", sitemap_url=sitemap_url, children=len(children), depth=depth)
            nested = await asyncio.gather(
                *(self.urls_from_sitemap(child, depth=depth + 1, visited=visited) for child in children)
            )
            for child_outcome in nested:
                outcome.value |= child_outcome.value
                outcome.merge_errors(child_outcome)
            return outcome

        for url in _locs(soup, "url"):
            if _matches_keywords(url, self.config.sitemap_keywords):
                outcome.value.add(url)
        return outcome

    async def discover(self, base_url: str) -> Outcome[Set[str]]:
        located = await self.find_sitemap_urls(base_url)
        outcome: Outcome[Set[str]] = Outcome(value=set(), errors=list(located.errors))
        visited: Set[str] = set()

        results = await asyncio.gather(*(self.urls_from_sitemap(url, visited=visited) for url in located.value))
        for result in results:
            outcome.value |= result.value
            outcome.merge_errors(result)

        logger.debug("Sitemap discovery finished", base_url=base_url, found=len(outcome.value))
        return outcome
