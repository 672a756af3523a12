"""Shared fixtures for the review scraper test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the scraper modules are importable from tests/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dom_locator import DomNode, DomSnapshot


def _flatten(shape, parent, nodes):
    """Append *shape* and its children to *nodes*; return its text.

    A ``str`` is a leaf element with that text.  A ``list`` is an element
    whose text is its children's texts joined by a space, the way
    ``innerText`` renders stacked blocks.
    """
    index = len(nodes)
    node = DomNode(index=index, parent=parent, text="")
    nodes.append(node)
    if isinstance(shape, str):
        node.text = shape
    else:
        node.text = " ".join(
            t for t in (_flatten(child, index, nodes) for child in shape) if t
        )
    node.length = len(node.text)
    return node.text


@pytest.fixture
def build_snapshot():
    """Factory: nested lists/strings -> ``DomSnapshot`` in document order."""

    def _build(*top_level):
        nodes: list[DomNode] = []
        for shape in top_level:
            _flatten(shape, None, nodes)
        return DomSnapshot(nodes)

    return _build


@pytest.fixture
def make_card():
    """Factory for one rendered review card.

    Layout mirrors the profile page: handle, rating, date, then the body
    paragraph with a trailing "See more" button.
    """

    def _make(
        reviewer="alice_99",
        rating="4.9",
        date="10/02/2025",
        body="Great packaging and fast shipping overall",
        *,
        expand=True,
    ):
        body_block = [body, ["See more"]] if expand else [body]
        return [[reviewer], [rating], [date], body_block]

    return _make


@pytest.fixture
def review_payload():
    """Captured API response with reviews nested two levels deep."""
    return {
        "data": {
            "user": {"username": "collectingfever", "followerCount": 1204},
            "feedback": {
                "edges": [
                    {
                        "rating": 5,
                        "comment": "Cards arrived sleeved and top-loaded, thanks!",
                        "buyer": {"username": "pack_ripper", "id": "u1"},
                    },
                    {
                        "rating": "4.5",
                        "comment": "Slow to ship but everything was as described.",
                        "buyer": {"username": "slab_king", "id": "u2"},
                    },
                ],
                "pageInfo": {"hasNextPage": True},
            },
        },
    }


@pytest.fixture
def loader_for():
    """Wrap a snapshot in the async loader ``run_pipeline`` expects and
    count how often it is awaited."""

    def _make(snapshot):
        calls = {"n": 0}

        async def _load():
            calls["n"] += 1
            return snapshot

        _load.calls = calls
        return _load

    return _make
