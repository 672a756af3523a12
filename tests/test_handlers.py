"""Tests for handlers/ — capture window, popup dismissal, scrolling."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from handlers import CaptureWindow, CaptureWindowOpen, dismiss_popups, scroll_for_lazy_load


def _response(body=None, *, status=200, content_type="application/json; charset=utf-8",
              url="https://api.example.test/graphql", error=None):
    resp = MagicMock()
    resp.status = status
    resp.url = url
    resp.headers = {"content-type": content_type}
    resp.json = AsyncMock(return_value=body, side_effect=error)
    return resp


# =====================================================================
# CaptureWindow
# =====================================================================


class TestCaptureWindow:

    def test_collects_json_between_open_and_close(self):
        page = MagicMock()
        window = CaptureWindow()

        async def _scenario():
            window.open(page)
            page.on.assert_called_once_with("response", window._on_response)
            window._on_response(_response({"reviews": [1]}))
            window._on_response(_response({"other": True}, url="https://api.example.test/b"))
            await window.close()

        asyncio.run(_scenario())
        assert window.payloads() == [{"reviews": [1]}, {"other": True}]
        assert [c["url"] for c in window.captured()] == [
            "https://api.example.test/graphql", "https://api.example.test/b",
        ]
        page.remove_listener.assert_called_once_with("response", window._on_response)

    @pytest.mark.parametrize("resp", [
        _response({"a": 1}, status=404),
        _response({"a": 1}, status=301),
        _response("<html>", content_type="text/html"),
        _response(None, error=ValueError("not json")),
    ])
    def test_malformed_input_is_skipped(self, resp):
        window = CaptureWindow()

        async def _scenario():
            window.open(MagicMock())
            kept = await window.consume(resp)
            await window.close()
            return kept

        assert asyncio.run(_scenario()) is False
        assert window.payloads() == []
        assert window.skipped == 1

    def test_payloads_before_close_raise(self):
        window = CaptureWindow()
        window.open(MagicMock())
        with pytest.raises(CaptureWindowOpen):
            window.payloads()

    def test_window_cannot_be_reopened(self):
        window = CaptureWindow()

        async def _scenario():
            window.open(MagicMock())
            await window.close()

        asyncio.run(_scenario())
        with pytest.raises(CaptureWindowOpen):
            window.open(MagicMock())

    def test_close_without_open_raises(self):
        with pytest.raises(CaptureWindowOpen):
            asyncio.run(CaptureWindow().close())

    def test_late_responses_are_ignored(self):
        window = CaptureWindow()

        async def _scenario():
            window.open(MagicMock())
            await window.close()
            window._on_response(_response({"late": True}))

        asyncio.run(_scenario())
        assert window.payloads() == []


# =====================================================================
# Popups
# =====================================================================


def _page_with_buttons(count=1, click_error=None):
    page = MagicMock()
    buttons = MagicMock()
    buttons.count = AsyncMock(return_value=count)
    buttons.first.click = AsyncMock(side_effect=click_error)
    page.get_by_role.return_value = buttons
    page.evaluate = AsyncMock(return_value=0)
    return page, buttons


class TestDismissPopups:

    def test_clicks_each_named_button(self):
        page, buttons = _page_with_buttons()
        assert asyncio.run(dismiss_popups(page)) == 3
        names = [c.kwargs["name"].pattern for c in page.get_by_role.call_args_list]
        assert names == ["not now", "no thanks", "close"]
        buttons.first.click.assert_awaited_with(timeout=1_500)

    def test_missing_buttons_are_not_clicked(self):
        page, buttons = _page_with_buttons(count=0)
        assert asyncio.run(dismiss_popups(page, ["close"])) == 0
        buttons.first.click.assert_not_awaited()

    def test_click_failure_is_swallowed(self):
        page, _ = _page_with_buttons(click_error=RuntimeError("element detached"))
        assert asyncio.run(dismiss_popups(page)) == 0

    def test_overlay_removal_failure_is_swallowed(self):
        page, _ = _page_with_buttons(count=0)
        page.evaluate = AsyncMock(side_effect=RuntimeError("navigated away"))
        assert asyncio.run(dismiss_popups(page)) == 0


# =====================================================================
# Scrolling
# =====================================================================


class TestScroll:

    def test_scrolls_requested_steps(self):
        page = MagicMock()
        page.mouse.wheel = AsyncMock()
        done = asyncio.run(scroll_for_lazy_load(page, steps=4, delta_y=900, pause_sec=0))
        assert done == 4
        assert page.mouse.wheel.await_count == 4
        page.mouse.wheel.assert_awaited_with(0, 900)

    def test_failed_step_stops_loop(self):
        page = MagicMock()
        page.mouse.wheel = AsyncMock(side_effect=[None, RuntimeError("page closed"), None])
        done = asyncio.run(scroll_for_lazy_load(page, steps=3, pause_sec=0))
        assert done == 1
