"""
Probing of conventional menu locations with HEAD requests.
"""

from __future__ import annotations

import asyncio
from typing import List, Set

import structlog

from menuquarry.config.config import DiscoveryConfig, FetchConfig
from menuquarry.errors import ExtractionError
from menuquarry.protocols import Fetcher, Outcome

from .sitemaps import origin_of

logger = structlog.get_logger(__name__)


class CommonPathProber:
    """Checks a fixed list of plausible menu paths for existence."""

    def __init__(self, fetcher: Fetcher, config: DiscoveryConfig, fetch_config: FetchConfig) -> None:
        self.fetcher = fetcher
        self.config = config
        self.fetch_config = fetch_config

    def probe_urls(self, base_url: str) -> List[str]:
        origin = origin_of(base_url)
        return [f"{origin}{path}" for path in self.config.common_paths]

    async def _probe(self, url: str) -> Outcome[bool]:
        try:
            response = await self.fetcher.fetch(url, method="HEAD", timeout=self.fetch_config.head_timeout)
        except ExtractionError as e:
            return Outcome(value=False, errors=[e])
        return Outcome(value=200 <= response.status < 300)

    async def discover(self, base_url: str) -> Outcome[Set[str]]:
        urls = self.probe_urls(base_url)
        results = await asyncio.gather(*(self._probe(url) for url in urls))

        outcome: Outcome[Set[str]] = Outcome(value=set())
        for url, result in zip(urls, results):
            if result.value:
                outcome.value.add(url)
            # 404s are the expected answer for most paths; keep them out of the diagnostics
            outcome.errors.extend(e for e in result.errors if getattr(e, "status", None) != 404)

        logger.debug("Common path probing finished", base_url=base_url, probed=len(urls), found=len(outcome.value))
        return outcome
