"""
Abstract base class for profile review scrapers.

Provides shared browser lifecycle management, viewport/user-agent setup,
playwright-stealth patching, and debug artifact capture.  Subclasses
implement ``scrape()`` with their source-specific navigation; extraction
itself is delegated to the pure pipeline in ``pipeline.py``.
"""

from __future__ import annotations

import abc
import logging
import os
from pathlib import Path
from typing import Any

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)
from playwright_stealth import Stealth

from config.settings import (
    BROWSER_ARGS, GOTO_TIMEOUT_MS, WAIT_UNTIL, get_user_agent, get_viewport,
)

DEBUG_DIR = Path(os.getenv("DEBUG_DIR", "debug_screenshots"))

logger = logging.getLogger(__name__)

_STEALTH = Stealth()


async def launch_browser(
    pw: Playwright,
    *,
    extra_args: list[str] | None = None,
) -> Browser:
    """Launch headless Chromium with the shared argument list."""
    browser = await pw.chromium.launch(
        headless=True,
        args=BROWSER_ARGS + (extra_args or []),
    )
    logger.info("Browser launched: bundled Chromium")
    return browser


class BaseScraper(abc.ABC):
    """Skeleton shared by every review scraper.

    Usage (standalone, creates its own browser)::

        async with WhatnotScraper(url) as scraper:
            result = await scraper.scrape(limit=6)

    Usage (shared browser)::

        browser = await launch_browser(pw)
        async with WhatnotScraper(url, browser=browser) as scraper:
            result = await scraper.scrape(limit=6)
    """

    source: str = "generic"

    def __init__(
        self,
        url: str,
        *,
        browser: Browser | None = None,
    ) -> None:
        self.url = url
        self._shared_browser = browser

        # Set by __aenter__
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    # ------------------------------------------------------------------
    # Async context manager: browser lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "BaseScraper":
        if self._shared_browser:
            self._browser = self._shared_browser
        else:
            self._pw = await async_playwright().start()
            self._browser = await launch_browser(self._pw)

        self._context = await self._browser.new_context(
            viewport=get_viewport(),
            user_agent=get_user_agent(),
            locale="en-US",
        )
        await _STEALTH.apply_stealth_async(self._context)
        self._page = await self._context.new_page()

        logger.info("[%s] Browser ready (shared=%s)", self.source, bool(self._shared_browser))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        for obj in (self._page, self._context):
            if obj:
                try:
                    await obj.close()
                except Exception:
                    logger.debug("[%s] Close failed", self.source, exc_info=True)
        if not self._shared_browser:
            if self._browser:
                try:
                    await self._browser.close()
                except Exception:
                    logger.debug("[%s] Browser close failed", self.source, exc_info=True)
            if self._pw:
                await self._pw.stop()
        logger.info("[%s] Cleanup done", self.source)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @property
    def page(self) -> Page:
        assert self._page is not None, "BaseScraper must be used as an async context manager"
        return self._page

    async def goto(self, url: str | None = None) -> None:
        """Navigate to *url* (defaults to ``self.url``).  Failures propagate:
        without the page there is nothing to extract."""
        target = url or self.url
        logger.info("[%s] Navigating to %s (wait_until=%s)", self.source, target, WAIT_UNTIL)
        await self.page.goto(target, wait_until=WAIT_UNTIL, timeout=GOTO_TIMEOUT_MS)

    async def save_debug_info(self, label: str) -> None:
        """Save a screenshot and the first 50 KB of HTML under ``DEBUG_DIR``.

        Errors are caught so this never breaks the scrape.
        """
        prefix = f"{self.source}_{label}"
        try:
            DEBUG_DIR.mkdir(parents=True, exist_ok=True)
            logger.info("[%s] DEBUG url=%s", self.source, self.page.url)
            await self.page.screenshot(path=str(DEBUG_DIR / f"{prefix}.png"), full_page=True)
            html = await self.page.content()
            (DEBUG_DIR / f"{prefix}.html").write_text(html[:50_000], encoding="utf-8")
            logger.info("[%s] Debug artifacts saved: %s", self.source, DEBUG_DIR / prefix)
        except Exception as exc:
            logger.warning("[%s] Failed to save debug info: %s", self.source, exc)

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def scrape(self, limit: int) -> dict[str, Any]:
        """Scrape up to *limit* reviews.

        Returns the pipeline result: ``{"reviews", "strategy", "attempted"}``.
        """
        ...
