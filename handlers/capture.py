"""
Network response capture with an explicit capture window.

Responses arrive asynchronously while the page loads and scrolls, and
reading a body is itself async.  To keep the scan deterministic the
capture follows a two-phase protocol::

    window = CaptureWindow()
    window.open(page)        # start listening
    ...navigate, dismiss popups, scroll...
    await window.close()     # stop listening, drain pending body reads
    payloads = window.payloads()

Only 2xx responses with a JSON content type are kept.  A body that fails
to decode is skipped; nothing in here raises on bad input.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from playwright.async_api import Page, Response

logger = logging.getLogger(__name__)


class CaptureWindowOpen(RuntimeError):
    """Captured payloads were requested before ``close()``, or a window
    was reused."""


class CaptureWindow:

    def __init__(self) -> None:
        self._page: Page | None = None
        self._state = "idle"  # idle -> open -> closed
        self._pending: set[asyncio.Task] = set()
        self._captured: list[dict[str, Any]] = []
        self.skipped = 0

    @property
    def state(self) -> str:
        return self._state

    def open(self, page: Page) -> None:
        if self._state != "idle":
            raise CaptureWindowOpen(f"capture window already {self._state}")
        self._page = page
        self._state = "open"
        page.on("response", self._on_response)
        logger.debug("Capture window opened")

    async def close(self) -> None:
        """Stop listening and wait for in-flight body reads to finish."""
        if self._state != "open":
            raise CaptureWindowOpen(f"cannot close a capture window that is {self._state}")
        self._state = "closed"
        if self._page is not None:
            try:
                self._page.remove_listener("response", self._on_response)
            except Exception:
                logger.debug("Failed to detach response listener", exc_info=True)
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        logger.info(
            "Capture window closed: %d JSON payload(s) kept, %d response(s) skipped",
            len(self._captured), self.skipped,
        )

    def captured(self) -> list[dict[str, Any]]:
        """``[{"url", "status", "body"}, ...]`` in arrival order."""
        if self._state != "closed":
            raise CaptureWindowOpen("close() the capture window before reading payloads")
        return list(self._captured)

    def payloads(self) -> list[Any]:
        return [entry["body"] for entry in self.captured()]

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------

    def _on_response(self, response: Response) -> None:
        if self._state != "open":
            return
        task = asyncio.get_running_loop().create_task(self.consume(response))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def consume(self, response: Response) -> bool:
        """Read one response; return ``True`` if its body was kept."""
        try:
            status = response.status
            content_type = (response.headers or {}).get("content-type", "").lower()
            if not 200 <= status < 300 or "json" not in content_type:
                self.skipped += 1
                return False
            body = await response.json()
        except Exception:
            logger.debug("Skipping unreadable response %s", getattr(response, "url", "?"), exc_info=True)
            self.skipped += 1
            return False

        self._captured.append({"url": response.url, "status": status, "body": body})
        logger.debug("Captured JSON response: %s", response.url[:100])
        return True
