"""
BeautifulSoup-based menu text extractor for static HTML.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional, Tuple

from bs4 import BeautifulSoup, Tag

from menuquarry.config.config import ExtractionSettings
from menuquarry.protocols import SourceType

from .models import ExtractedText
from .text_scoring import clean_text, score_region_text

logger = logging.getLogger(__name__)

EXCLUDED_TAGS: Tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    "script",
    "style",
    "noscript",
    "form",
    "iframe",
    "svg",
    "button",
    "aside",
)

EXCLUDED_MARKERS: Tuple[str, ...] = (
    "cookie",
    "consent",
    "gdpr",
    "popup",
    "modal",
    "newsletter",
    "advert",
    "ad-",
    "banner",
    "social",
)

# "ad-" only counts at the start of a class/id token, otherwise "thead-" or "menu-head-" would match.
EXCLUDED_MARKER_PATTERN = "|".join(
    r"(?:^|[\s_-])ad-" if marker == "ad-" else re.escape(marker) for marker in EXCLUDED_MARKERS
)
_EXCLUDED_MARKER_RE = re.compile(EXCLUDED_MARKER_PATTERN, re.IGNORECASE)

REGION_SELECTORS: Tuple[str, ...] = (
    '[class*="menu" i]',
    '[id*="menu" i]',
    '[class*="carte" i]',
    '[id*="carte" i]',
    '[class*="food" i]',
    '[id*="food" i]',
    '[class*="dish" i]',
    '[id*="dish" i]',
    "article",
    "main",
    '[role="main"]',
    "#content",
    ".content",
)

_PROTECTED_TAGS = frozenset({"html", "body", "[document]"})


def _marker_text(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    element_id = tag.get("id") or ""
    return " ".join([*classes, str(element_id)])


def strip_excluded(soup: BeautifulSoup) -> None:
    """Remove navigation, chrome and overlay elements in place."""
    for tag in soup.find_all(list(EXCLUDED_TAGS)):
        tag.decompose()

    # Collect first, decomposing while iterating find_all skips siblings.
    marked = [
        tag
        for tag in soup.find_all(True)
        if tag.name not in _PROTECTED_TAGS and _EXCLUDED_MARKER_RE.search(_marker_text(tag))
    ]
    for tag in marked:
        if not tag.decomposed:
            tag.decompose()


class MenuHtmlExtractor:
    """Extracts the most menu-like region of an HTML page as clean text."""

    name = "html"

    def __init__(self, settings: Optional[ExtractionSettings] = None) -> None:
        self.settings = settings or ExtractionSettings()
        self.parser = "html.parser"

    def find_menu_region(self, soup: BeautifulSoup) -> Optional[str]:
        """
        Raw text of the highest-scoring region, or None.

        Selectors are evaluated in priority order and only regions whose raw text
        exceeds ``min_region_length`` qualify. Earlier matches win ties.
        """
        best_text: Optional[str] = None
        best_score = -1

        for selector in REGION_SELECTORS:
            for element in soup.select(selector):
                text = element.get_text(separator="\n")
                if len(text) <= self.settings.min_region_length:
                    continue
                score = score_region_text(text, self.settings.price_weight)
                if score > best_score:
                    best_text, best_score = text, score

        if best_text is not None:
            logger.debug("Selected menu region with score %d", best_score)
        return best_text

    def extract_text(self, html: str) -> str:
        """Best menu region, else the page's visible text, cleaned. Never raises."""
        if not html or not html.strip():
            return ""

        try:
            soup = BeautifulSoup(html, self.parser)
            strip_excluded(soup)
            region = self.find_menu_region(soup)
            if region is not None:
                return clean_text(region)
            body = soup.body or soup
            return clean_text(body.get_text(separator="\n"))
        except Exception as e:
            logger.warning(f"HTML menu extraction failed: {e}")
            try:
                return clean_text(BeautifulSoup(html, self.parser).get_text(separator="\n"))
            except Exception:
                return ""

    def extract_region_only(self, html: str) -> Optional[str]:
        """Cleaned region text without body fallback, for already-rendered pages."""
        if not html or not html.strip():
            return None
        soup = BeautifulSoup(html, self.parser)
        strip_excluded(soup)
        region = self.find_menu_region(soup)
        return clean_text(region) if region is not None else None

    async def extract(self, body: bytes, *, url: str | None = None, encoding: str | None = None) -> ExtractedText:
        """Decode and extract off the event loop."""
        try:
            html = body.decode(encoding or "utf-8", errors="replace")
        except LookupError:
            html = body.decode("utf-8", errors="replace")
        text = await asyncio.to_thread(self.extract_text, html)
        return ExtractedText(url=url, text=text, source=SourceType.HTML, method="html")
