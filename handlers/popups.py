"""
Signup / app-install overlay dismissal.

The profile page opens with one or more modals ("Sign up to follow",
"Get the app") that cover the review list.  Each known button is tried
once by its accessible name; every click is best-effort and a failure
never aborts the run.  A JavaScript pass then removes any fixed overlay
that survived and re-enables scrolling.
"""

import logging
import re

from playwright.async_api import Page, Frame, TimeoutError as PlaywrightTimeout

logger = logging.getLogger(__name__)

DEFAULT_POPUP_BUTTONS = ["not now", "no thanks", "close"]
CLICK_TIMEOUT_MS = 1_500

_JS_REMOVE_OVERLAYS = """
() => {
    const candidates = document.querySelectorAll(
        '[role="dialog"], [aria-modal="true"], .modal-backdrop, '
        + '[class*="modal"], [class*="overlay"], [class*="Backdrop"]'
    );
    let removed = 0;
    for (const el of candidates) {
        const style = window.getComputedStyle(el);
        if (style.position === 'fixed' || el.getAttribute('aria-modal') === 'true') {
            el.remove();
            removed++;
        }
    }
    document.body.style.overflow = 'auto';
    document.documentElement.style.overflow = 'auto';
    return removed;
}
"""


async def click_button_by_name(
    target: Page | Frame,
    name: str,
    *,
    timeout_ms: int = CLICK_TIMEOUT_MS,
) -> bool:
    """Click the first button whose accessible name matches *name*.

    Returns ``True`` if a click went through.
    """
    try:
        buttons = target.get_by_role("button", name=re.compile(name, re.IGNORECASE))
        if await buttons.count() == 0:
            return False
        await buttons.first.click(timeout=timeout_ms)
        logger.info("Popup dismissed via button %r", name)
        return True
    except PlaywrightTimeout:
        logger.debug("Popup button %r not clickable within %dms", name, timeout_ms)
        return False
    except Exception:
        logger.debug("Popup button %r raised", name, exc_info=True)
        return False


async def dismiss_popups(
    target: Page | Frame,
    names: list[str] | None = None,
    *,
    timeout_ms: int = CLICK_TIMEOUT_MS,
) -> int:
    """Try each popup button in order; return how many were clicked."""
    clicked = 0
    for name in names or DEFAULT_POPUP_BUTTONS:
        if await click_button_by_name(target, name, timeout_ms=timeout_ms):
            clicked += 1

    removed = await force_remove_overlays(target)
    if clicked == 0 and removed == 0:
        logger.debug("No popups detected — continuing normally")
    return clicked


async def force_remove_overlays(target: Page | Frame) -> int:
    """Remove fixed modal overlays left after the clicks.

    Returns the number of elements removed.
    """
    try:
        removed = await target.evaluate(_JS_REMOVE_OVERLAYS)
        if removed:
            logger.debug("JS overlay removal cleared %d element(s)", removed)
        return removed or 0
    except Exception:
        logger.debug("JS overlay removal failed", exc_info=True)
        return 0
