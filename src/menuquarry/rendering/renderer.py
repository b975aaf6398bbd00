"""
Headless-browser rendering for JavaScript-built menu pages.

Every call launches and closes its own Chromium instance; browsers are never
shared between calls or requests.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import structlog
from playwright.async_api import async_playwright

from menuquarry.config.config import DEFAULT_USER_AGENT, ExtractionSettings, RenderConfig
from menuquarry.extractor.html_extractor import EXCLUDED_MARKER_PATTERN, EXCLUDED_TAGS, MenuHtmlExtractor
from menuquarry.extractor.text_scoring import clean_text

logger = structlog.get_logger(__name__)

# Mirrors ``strip_excluded`` for the live DOM.
STRIP_EXCLUDED_SCRIPT = """
([tags, markerPattern]) => {
    const marker = new RegExp(markerPattern, "i");
    document.querySelectorAll(tags.join(",")).forEach((el) => el.remove());
    document.querySelectorAll("body *").forEach((el) => {
        if (!el.isConnected) return;
        const cls = typeof el.className === "string" ? el.className : (el.getAttribute("class") || "");
        if (marker.test(`${cls} ${el.id || ""}`)) el.remove();
    });
}
"""


class PlaywrightRenderer:
    """Renders a URL in headless Chromium and extracts its menu text."""

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        extraction: Optional[ExtractionSettings] = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.config = config or RenderConfig()
        self.html_extractor = MenuHtmlExtractor(extraction)
        self.user_agent = user_agent
        self.playwright_factory = playwright_factory

    async def render_and_extract(self, url: str) -> Optional[str]:
        """
        Rendered menu text for ``url``, or None on any failure.

        Launch, navigation and evaluation errors as well as the overall timeout
        are logged and reported as None. Cancellation propagates after the
        browser has been closed.
        """
        if not self.config.enabled:
            return None

        try:
            async with asyncio.timeout(self.config.total_timeout):
                text = await self._render(url)
        except Exception as e:
            logger.warning("Rendering failed", url=url, error=str(e), error_type=type(e).__name__)
            return None

        if not text:
            logger.debug("Rendered page yielded no text", url=url)
            return None
        return text

    async def _render(self, url: str) -> Optional[str]:
        async with self.playwright_factory() as playwright:
            browser = await playwright.chromium.launch(headless=self.config.headless)
            try:
                page = await browser.new_page(user_agent=self.user_agent)
                await page.goto(url, wait_until="networkidle", timeout=self.config.navigation_timeout * 1000)
                await asyncio.sleep(self.config.settle_delay)

                await self._reveal_menu(page)

                await page.evaluate(STRIP_EXCLUDED_SCRIPT, [list(EXCLUDED_TAGS), EXCLUDED_MARKER_PATTERN])
                html = await page.content()
                region = await asyncio.to_thread(self.html_extractor.extract_region_only, html)
                if region:
                    logger.debug("Rendered menu region selected", url=url, length=len(region))
                    return region

                body_text = await page.inner_text("body")
                return clean_text(body_text)
            finally:
                await browser.close()

    async def _reveal_menu(self, page: Any) -> bool:
        """Click the first menu-revealing control that accepts a click."""
        for selector in self.config.reveal_selectors:
            try:
                element = await page.query_selector(selector)
                if element is None:
                    continue
                await element.click(timeout=self.config.click_timeout * 1000)
            except Exception as e:
                logger.debug("Reveal click failed", selector=selector, error=str(e))
                continue
            logger.debug("Clicked menu reveal control", selector=selector)
            await asyncio.sleep(self.config.click_settle_delay)
            return True
        return False
