"""
Tests for sitemap-based discovery.
"""

import gzip

import pytest
from menuquarry.config.config import DiscoveryConfig, FetchConfig
from menuquarry.discovery.sitemaps import SitemapDiscoverer, origin_of, parse_sitemap_directives
from menuquarry.errors import FetchError

from tests.helpers.fakes import ROBOTS_TXT, FakeFetcher

BASE = "https://bistro.example"
XML = "application/xml"

SITEMAP_INDEX = """<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>https://bistro.example/sitemap-pages.xml</loc></sitemap>
  <sitemap><loc>https://bistro.example/sitemap-docs.xml</loc></sitemap>
</sitemapindex>
"""

PAGES_SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://bistro.example/</loc></url>
  <url><loc>https://bistro.example/our-menu</loc></url>
  <url><loc>https://bistro.example/contact</loc></url>
</urlset>
"""

DOCS_SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://bistro.example/files/menu-ete.pdf</loc></url>
  <url><loc>https://bistro.example/files/press-kit.pdf</loc></url>
</urlset>
"""


def _discoverer(fetcher, **overrides) -> SitemapDiscoverer:
    return SitemapDiscoverer(fetcher, DiscoveryConfig(**overrides), FetchConfig())


@pytest.mark.unit
class TestRobotsDirectives:
    """robots.txt parsing."""

    def test_sitemap_lines_in_order(self):
        robots = "User-agent: *\nSitemap: https://a.example/one.xml\nsitemap:https://a.example/two.xml\n"
        assert parse_sitemap_directives(robots) == ["https://a.example/one.xml", "https://a.example/two.xml"]

    def test_duplicates_and_empty_values_ignored(self):
        robots = "SITEMAP: https://a.example/s.xml\nSitemap: https://a.example/s.xml\nSitemap:\nDisallow: /"
        assert parse_sitemap_directives(robots) == ["https://a.example/s.xml"]

    def test_no_directives(self):
        assert parse_sitemap_directives("User-agent: *\nDisallow: /private") == []

    def test_origin_of(self):
        assert origin_of("https://bistro.example:8443/fr/carte?x=1") == "https://bistro.example:8443"


@pytest.mark.unit
class TestSitemapDiscoverer:
    """Locating and walking sitemaps."""

    @pytest.mark.asyncio
    async def test_index_with_two_children(self):
        """Both children of a sitemap index are followed and menu URLs kept."""
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/robots.txt", ROBOTS_TXT, content_type="text/plain")
        fetcher.add(f"{BASE}/sitemap_index.xml", SITEMAP_INDEX, content_type=XML)
        fetcher.add(f"{BASE}/sitemap-pages.xml", PAGES_SITEMAP, content_type=XML)
        fetcher.add(f"{BASE}/sitemap-docs.xml", DOCS_SITEMAP, content_type=XML)

        outcome = await _discoverer(fetcher).discover(BASE)

        assert outcome.value == {f"{BASE}/our-menu", f"{BASE}/files/menu-ete.pdf"}
        assert outcome.ok

    @pytest.mark.asyncio
    async def test_fallback_paths_without_robots(self):
        """A missing robots.txt falls back to the conventional sitemap locations."""
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/sitemap.xml", PAGES_SITEMAP, content_type=XML)

        outcome = await _discoverer(fetcher).discover(BASE)

        assert outcome.value == {f"{BASE}/our-menu"}
        assert f"{BASE}/sitemap.xml" in fetcher.fetched()
        assert f"{BASE}/sitemap_index.xml" in fetcher.fetched()
        assert any(isinstance(e, FetchError) for e in outcome.errors)

    @pytest.mark.asyncio
    async def test_robots_without_directives_uses_fallbacks(self):
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/robots.txt", "User-agent: *\nDisallow:", content_type="text/plain")

        located = await _discoverer(fetcher).find_sitemap_urls(f"{BASE}/some/page")

        assert located.value == [f"{BASE}/sitemap.xml", f"{BASE}/sitemap_index.xml"]
        assert located.ok

    @pytest.mark.asyncio
    async def test_gzipped_sitemap(self):
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/sitemap.xml.gz", gzip.compress(DOCS_SITEMAP.encode()), content_type="application/gzip")

        outcome = await _discoverer(fetcher).urls_from_sitemap(f"{BASE}/sitemap.xml.gz")

        assert outcome.value == {f"{BASE}/files/menu-ete.pdf"}

    @pytest.mark.asyncio
    async def test_self_referencing_index_terminates(self):
        looping = SITEMAP_INDEX.replace("sitemap-docs.xml", "sitemap_index.xml")
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/sitemap_index.xml", looping, content_type=XML)
        fetcher.add(f"{BASE}/sitemap-pages.xml", PAGES_SITEMAP, content_type=XML)

        outcome = await _discoverer(fetcher).urls_from_sitemap(f"{BASE}/sitemap_index.xml")

        assert outcome.value == {f"{BASE}/our-menu"}
        assert fetcher.fetched().count(f"{BASE}/sitemap_index.xml") == 1

    @pytest.mark.asyncio
    async def test_depth_cap(self):
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/sitemap_index.xml", SITEMAP_INDEX, content_type=XML)
        fetcher.add(f"{BASE}/sitemap-pages.xml", PAGES_SITEMAP, content_type=XML)

        outcome = await _discoverer(fetcher, max_sitemap_depth=0).urls_from_sitemap(f"{BASE}/sitemap_index.xml")

        assert outcome.value == set()
        assert f"{BASE}/sitemap-pages.xml" not in fetcher.fetched()

    @pytest.mark.asyncio
    async def test_keywords_are_configurable(self):
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/sitemap.xml", DOCS_SITEMAP, content_type=XML)

        outcome = await _discoverer(fetcher, sitemap_keywords=["press"]).urls_from_sitemap(f"{BASE}/sitemap.xml")

        assert outcome.value == {f"{BASE}/files/press-kit.pdf"}

    @pytest.mark.asyncio
    async def test_child_failure_is_recorded_not_raised(self):
        fetcher = FakeFetcher()
        fetcher.add(f"{BASE}/sitemap_index.xml", SITEMAP_INDEX, content_type=XML)
        fetcher.add(f"{BASE}/sitemap-pages.xml", PAGES_SITEMAP, content_type=XML)
        fetcher.routes[f"{BASE}/sitemap-docs.xml"] = FetchError("HTTP 500", status=500)

        outcome = await _discoverer(fetcher).urls_from_sitemap(f"{BASE}/sitemap_index.xml")

        assert outcome.value == {f"{BASE}/our-menu"}
        assert len(outcome.errors) == 1
        assert outcome.errors[0].status == 500
