"""Tests for platforms/whatnot.py with a mocked Playwright page."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

import platforms.base as base_module
import platforms.whatnot as whatnot_module
from platforms import WhatnotScraper

URL = "https://www.whatnot.com/user/collectingfever/reviews"


def _rows(snapshot):
    return [{"i": n.index, "p": n.parent, "t": n.text, "n": n.length} for n in snapshot.nodes]


@pytest.fixture(autouse=True)
def no_waits(monkeypatch):
    monkeypatch.setitem(whatnot_module._WHATNOT_CFG, "settle_after_goto_sec", 0)
    monkeypatch.setitem(whatnot_module._WHATNOT_CFG, "scroll_pause_sec", 0)


@pytest.fixture
def fake_page():
    def _make(rows):
        page = MagicMock()
        page.url = URL
        page.goto = AsyncMock()
        page.mouse.wheel = AsyncMock()
        buttons = MagicMock()
        buttons.count = AsyncMock(return_value=0)
        page.get_by_role.return_value = buttons
        # evaluate(script) -> overlay removal; evaluate(script, cap) -> snapshot
        page.evaluate = AsyncMock(side_effect=lambda script, *args: rows if args else 0)
        page.screenshot = AsyncMock()
        page.content = AsyncMock(return_value="<html></html>")
        return page

    return _make


def _scraper(page):
    scraper = WhatnotScraper(URL)
    scraper._page = page
    return scraper


class TestWhatnotScraper:

    def test_dom_fallback_when_nothing_captured(self, fake_page, build_snapshot, make_card):
        snap = build_snapshot([make_card(), make_card(reviewer="bob_b")])
        page = fake_page(_rows(snap))
        result = asyncio.run(_scraper(page).scrape(6))

        assert result["strategy"] == "anchor_dom"
        assert [r["reviewer"] for r in result["reviews"]] == ["alice_99", "bob_b"]
        page.goto.assert_awaited_once()
        assert page.mouse.wheel.await_count == 4
        page.on.assert_called_once()
        page.remove_listener.assert_called_once()

    def test_snapshot_failure_yields_empty_result(self, fake_page, monkeypatch, tmp_path):
        monkeypatch.setattr(base_module, "DEBUG_DIR", tmp_path)
        page = fake_page([])
        page.evaluate = AsyncMock(side_effect=lambda script, *args: _raise() if args else 0)
        result = asyncio.run(_scraper(page).scrape(6))

        assert result["reviews"] == []
        assert result["strategy"] is None
        assert (tmp_path / "whatnot_no_reviews.html").exists()

    def test_navigation_failure_is_fatal(self, fake_page):
        page = fake_page([])
        page.goto = AsyncMock(side_effect=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
        with pytest.raises(RuntimeError):
            asyncio.run(_scraper(page).scrape(6))
        page.remove_listener.assert_called_once()

    def test_read_dom_snapshot(self, fake_page, build_snapshot):
        snap = build_snapshot(["a", ["b"]])
        page = fake_page(_rows(snap))
        result = asyncio.run(_scraper(page).read_dom_snapshot())
        assert [n.text for n in result.nodes] == ["a", "b", "b"]


def _raise():
    raise RuntimeError("Execution context was destroyed")
