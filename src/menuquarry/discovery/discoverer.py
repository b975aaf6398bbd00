"""
Candidate discovery: sitemaps, homepage links and common paths, run concurrently.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Set

import structlog

from menuquarry.config.config import DiscoveryConfig, FetchConfig
from menuquarry.observability import increment
from menuquarry.protocols import Candidate, Fetcher, Outcome
from menuquarry.utils.urls import canonical_url

from .common_paths import CommonPathProber
from .links import HomepageLinkScraper
from .scorer import rank_candidates
from .sitemaps import SitemapDiscoverer

logger = structlog.get_logger(__name__)


class CandidateDiscoverer:
    """
    Enumerates URLs that may contain the menu.

    ``discover_candidates`` never raises: every sub-discovery failure is logged
    and returned in ``Outcome.errors`` while the remaining sources still count.
    """

    def __init__(self, fetcher: Fetcher, config: DiscoveryConfig, fetch_config: FetchConfig) -> None:
        self.config = config
        self.sources = {
            "sitemap": SitemapDiscoverer(fetcher, config, fetch_config),
            "homepage_links": HomepageLinkScraper(fetcher, config, fetch_config),
            "common_paths": CommonPathProber(fetcher, config, fetch_config),
        }

    async def discover_candidates(self, base_url: str) -> Outcome[Set[str]]:
        names = list(self.sources)
        results = await asyncio.gather(
            *(self.sources[name].discover(base_url) for name in names),
            return_exceptions=True,
        )

        # one spelling per canonical URL; the base URL and earlier sources keep theirs
        unique: Dict[str, str] = {canonical_url(base_url): base_url}
        outcome: Outcome[Set[str]] = Outcome(value=set())
        found: Dict[str, int] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Discovery source failed", source=name, error=str(result), error_type=type(result).__name__)
                outcome.errors.append(result)
                found[name] = 0
                continue
            for url in sorted(result.value):
                unique.setdefault(canonical_url(url), url)
            outcome.merge_errors(result)
            found[name] = len(result.value)
            increment("candidates_discovered_total", len(result.value), labels={"discovery_source": name})

        outcome.value = set(unique.values())
        logger.info(
            "Candidate discovery finished",
            base_url=base_url,
            total=len(outcome.value),
            errors=len(outcome.errors),
            **found,
        )
        return outcome

    async def ranked_candidates(self, base_url: str) -> Outcome[List[Candidate]]:
        """Discover and rank, keeping the configured top N."""
        discovered = await self.discover_candidates(base_url)
        ranked = rank_candidates(discovered.value, limit=self.config.max_candidates)
        return Outcome(value=ranked, errors=discovered.errors)
