"""
DOM card locator.

Works on a ``DomSnapshot``: one flat list of elements read from the page in
a single ``evaluate`` call, each carrying its parent index and its
whitespace-collapsed rendered text.  Two ways to pick review cards out of
it:

1. **Anchor-based** — every "see more" element is an anchor.  Walk up from
   it (at most ``ancestor_depth`` levels) and stop at the first ancestor
   that looks like one whole card: it has a rating token, is not noise, and
   its length sits inside the plausible-card window.
2. **Block-based** — only when no anchor produced a card.  Find the review
   section root (the element mentioning ``reviews (N)``), then take every
   descendant in the length window that is not noise and has either a date
   stamp or an expand marker, up to ``block_scan_cap`` blocks.

Both return candidate text blocks; turning them into records is the
pipeline's job.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator

from config.settings import DEFAULT_THRESHOLDS, Thresholds
from parser import clean, date_token, has_trailing_expand, is_noise, rating_token

logger = logging.getLogger(__name__)

_RE_REVIEW_COUNT = re.compile(r"reviews\s*\(\d+\)", re.IGNORECASE)

# One pass over every element under <body>.  innerText (not textContent)
# so that adjacent blocks stay separated by whitespace after cleaning.
JS_DOM_SNAPSHOT = """
(cap) => {
    const clean = (s) => (s || '').replace(/\\s+/g, ' ').trim();
    const els = Array.from(
        document.body.querySelectorAll('*:not(script):not(style):not(noscript)')
    );
    const index = new Map(els.map((el, i) => [el, i]));
    return els.map((el, i) => {
        const t = clean(el.innerText || el.textContent);
        const p = index.has(el.parentElement) ? index.get(el.parentElement) : null;
        return { i: i, p: p, t: t.slice(0, cap), n: t.length };
    });
}
"""


@dataclass
class DomNode:
    index: int
    parent: int | None
    text: str
    length: int = -1

    def __post_init__(self) -> None:
        if self.length < 0:
            self.length = len(self.text)


class DomSnapshot:
    """Flat, parent-linked view of the rendered document."""

    def __init__(self, nodes: list[DomNode]) -> None:
        self.nodes = nodes
        self._by_index = {n.index: n for n in nodes}

    @classmethod
    def from_evaluate(cls, rows: list[dict[str, Any]]) -> "DomSnapshot":
        """Build from the rows returned by ``JS_DOM_SNAPSHOT``."""
        nodes = [
            DomNode(
                index=int(row["i"]),
                parent=row.get("p"),
                text=clean(row.get("t")),
                length=int(row.get("n", len(row.get("t") or ""))),
            )
            for row in rows or []
        ]
        return cls(nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, index: int | None) -> DomNode | None:
        if index is None:
            return None
        return self._by_index.get(index)

    def ancestors(self, node: DomNode, max_depth: int | None = None) -> Iterator[DomNode]:
        """Yield parent, grandparent, ... up to *max_depth* levels.

        Without an explicit bound the walk is still capped at the snapshot
        size so a malformed parent chain cannot loop.
        """
        limit = max_depth if max_depth is not None else len(self.nodes)
        current = self.get(node.parent)
        depth = 0
        while current is not None and depth < limit:
            yield current
            depth += 1
            current = self.get(current.parent)

    def is_descendant(self, node: DomNode, root: DomNode) -> bool:
        return any(a.index == root.index for a in self.ancestors(node))


# =====================================================================
# Classification helpers
# =====================================================================


def in_card_window(node: DomNode, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    return thresholds.card_min_len < node.length < thresholds.card_max_len


def is_plausible_card(node: DomNode, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    return (
        in_card_window(node, thresholds)
        and rating_token(node.text) is not None
        and not is_noise(node.text, thresholds)
    )


def expand_markers(snapshot: DomSnapshot, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[DomNode]:
    """Elements whose whole text is a short "see more" label."""
    return [
        n for n in snapshot.nodes
        if n.length <= thresholds.expand_marker_max_len
        and has_trailing_expand(n.text, thresholds)
    ]


# =====================================================================
# Strategies
# =====================================================================


def anchor_candidates(snapshot: DomSnapshot, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[DomNode]:
    """One card per expand marker, found by walking up from the marker."""
    cards: list[DomNode] = []
    seen: set[int] = set()

    for marker in expand_markers(snapshot, thresholds):
        for ancestor in snapshot.ancestors(marker, thresholds.ancestor_depth):
            if is_plausible_card(ancestor, thresholds):
                # Nested markers (span inside button) reach the same card.
                if ancestor.index not in seen:
                    seen.add(ancestor.index)
                    cards.append(ancestor)
                break

    logger.debug("Anchor scan: %d card(s) from %d node(s)", len(cards), len(snapshot))
    return cards


def find_review_root(snapshot: DomSnapshot) -> DomNode | None:
    """First element whose text mentions ``Reviews (N)``; ``None`` means
    the whole document."""
    for node in snapshot.nodes:
        if _RE_REVIEW_COUNT.search(node.text):
            return node
    return None


def block_candidates(snapshot: DomSnapshot, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[DomNode]:
    """Length/content filtered blocks from under the review section root."""
    root = find_review_root(snapshot)
    blocks: list[DomNode] = []

    for node in snapshot.nodes:
        if root is not None and not snapshot.is_descendant(node, root):
            continue
        if not in_card_window(node, thresholds):
            continue
        if is_noise(node.text, thresholds):
            continue
        if date_token(node.text) is None and not has_trailing_expand(node.text, thresholds):
            continue
        blocks.append(node)
        if len(blocks) >= thresholds.block_scan_cap:
            break

    logger.debug(
        "Block scan: %d block(s) (root=%s)",
        len(blocks), root.index if root is not None else "document",
    )
    return blocks
