"""
Scroll-triggered lazy loading.

The review list appends items as the page scrolls.  Wheel events (rather
than ``window.scrollTo``) are used because the list listens for them on
its own scroll container.
"""

import asyncio
import logging

from playwright.async_api import Page

logger = logging.getLogger(__name__)


async def scroll_for_lazy_load(
    page: Page,
    *,
    steps: int = 4,
    delta_y: int = 900,
    pause_sec: float = 0.9,
) -> int:
    """Scroll down *steps* times, pausing after each wheel event.

    Returns the number of scroll steps that completed.  A failing step
    stops the loop; whatever already loaded is kept.
    """
    done = 0
    for step in range(1, steps + 1):
        try:
            await page.mouse.wheel(0, delta_y)
        except Exception as exc:
            logger.warning("Scroll step %d/%d failed (%s) — stopping", step, steps, exc)
            break
        done += 1
        if pause_sec > 0:
            await asyncio.sleep(pause_sec)

    logger.debug("Scrolled %d/%d step(s) of %dpx", done, steps, delta_y)
    return done
