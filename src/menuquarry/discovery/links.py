"""
Homepage anchor scraping.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Set
from urllib.parse import urldefrag, urljoin, urlparse

import structlog
from bs4 import BeautifulSoup

from menuquarry.config.config import DiscoveryConfig, FetchConfig
from menuquarry.errors import ExtractionError
from menuquarry.protocols import Fetcher, Outcome

logger = structlog.get_logger(__name__)

SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:", "sms:")


def extract_menu_links(html: str, base_url: str, keywords: Iterable[str]) -> Set[str]:
    """
    Internal links whose anchor text mentions one of ``keywords``.

    Links are resolved against ``base_url``, stripped of fragments, and kept only
    when they share the base URL's hostname. Malformed hrefs are skipped.
    """
    base_host = (urlparse(base_url).hostname or "").lower()
    lowered_keywords = [keyword.lower() for keyword in keywords]
    soup = BeautifulSoup(html, "html.parser")
    links: Set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href or href.startswith("#") or href.lower().startswith(SKIPPED_SCHEMES):
            continue

        text = anchor.get_text(" ", strip=True).lower()
        if not any(keyword in text for keyword in lowered_keywords):
            continue

        try:
            absolute, _ = urldefrag(urljoin(base_url, href))
            parsed = urlparse(absolute)
        except ValueError:
            continue
        if parsed.scheme not in ("http", "https"):
            continue
        if (parsed.hostname or "").lower() != base_host:
            continue
        links.add(absolute)

    return links


class HomepageLinkScraper:
    """Scrapes menu-looking internal links from the homepage."""

    def __init__(self, fetcher: Fetcher, config: DiscoveryConfig, fetch_config: FetchConfig) -> None:
        self.fetcher = fetcher
        self.config = config
        self.fetch_config = fetch_config

    async def discover(self, base_url: str) -> Outcome[Set[str]]:
        outcome: Outcome[Set[str]] = Outcome(value=set())
        try:
            response = await self.fetcher.fetch(base_url, timeout=self.fetch_config.homepage_timeout)
        except ExtractionError as e:
            logger.warning("Could not scrape homepage for links", base_url=base_url, error=str(e))
            outcome.errors.append(e)
            return outcome

        outcome.value = await asyncio.to_thread(
            extract_menu_links, response.text(), base_url, self.config.link_keywords
        )
        logger.debug("Homepage link scraping finished", base_url=base_url, found=len(outcome.value))
        return outcome
