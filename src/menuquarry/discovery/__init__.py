"""Candidate menu URL discovery and ranking."""

from .common_paths import CommonPathProber
from .discoverer import CandidateDiscoverer
from .links import HomepageLinkScraper, extract_menu_links
from .scorer import KEYWORD_WEIGHTS, PDF_BONUS, rank_candidates, score_url
from .sitemaps import SitemapDiscoverer, parse_sitemap_directives

__all__ = [
    "CandidateDiscoverer",
    "CommonPathProber",
    "HomepageLinkScraper",
    "KEYWORD_WEIGHTS",
    "PDF_BONUS",
    "SitemapDiscoverer",
    "extract_menu_links",
    "parse_sitemap_directives",
    "rank_candidates",
    "score_url",
]
