"""
Scraper for Whatnot seller profile review pages.

Flow:
  1. Open the capture window so every JSON API response is recorded.
  2. Navigate to the profile reviews URL and let it settle.
  3. Dismiss signup / app-install popups (best effort).
  4. Scroll a few times to trigger lazy loading of more reviews.
  5. Close the capture window, then run the extraction pipeline: captured
     JSON first, the rendered DOM only if the JSON held no reviews.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from config.settings import DEFAULT_THRESHOLDS, SOURCE_DEFAULTS, Thresholds
from dom_locator import JS_DOM_SNAPSHOT, DomSnapshot
from handlers import CaptureWindow, dismiss_popups, scroll_for_lazy_load
from pipeline import run_pipeline
from .base import BaseScraper

logger = logging.getLogger(__name__)

_WHATNOT_CFG = SOURCE_DEFAULTS["whatnot"]


class WhatnotScraper(BaseScraper):
    """Scraper for ``whatnot.com/user/<handle>/reviews``."""

    source = "whatnot"

    def __init__(self, url: str, *, browser=None, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> None:
        super().__init__(url, browser=browser)
        self.thresholds = thresholds

    async def scrape(self, limit: int) -> dict[str, Any]:
        window = CaptureWindow()
        window.open(self.page)

        try:
            await self.goto()
            await asyncio.sleep(_WHATNOT_CFG["settle_after_goto_sec"])
            await dismiss_popups(
                self.page,
                _WHATNOT_CFG["popup_buttons"],
                timeout_ms=_WHATNOT_CFG["popup_click_timeout_ms"],
            )
            await scroll_for_lazy_load(
                self.page,
                steps=_WHATNOT_CFG["scroll_steps"],
                delta_y=_WHATNOT_CFG["scroll_delta_y"],
                pause_sec=_WHATNOT_CFG["scroll_pause_sec"],
            )
        finally:
            await window.close()

        result = await run_pipeline(
            window.payloads(), self.read_dom_snapshot, limit, self.thresholds,
        )

        if not result["reviews"]:
            logger.warning("[%s] No reviews extracted — saving debug artifacts", self.source)
            await self.save_debug_info("no_reviews")
        else:
            logger.info(
                "[%s] Scrape complete — %d review(s) via %s",
                self.source, len(result["reviews"]), result["strategy"],
            )
        return result

    async def read_dom_snapshot(self) -> DomSnapshot:
        """Flatten the live document into a ``DomSnapshot``.

        A failed read yields an empty snapshot so the run ends with zero
        reviews instead of an error.
        """
        try:
            rows = await self.page.evaluate(JS_DOM_SNAPSHOT, self.thresholds.snapshot_text_cap)
        except Exception as exc:
            logger.warning("[%s] DOM snapshot failed (%s)", self.source, exc)
            rows = []
        return DomSnapshot.from_evaluate(rows)
