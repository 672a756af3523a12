"""
Review extraction pipeline.

Runs three strategies in a fixed priority order and stops at the first one
that yields at least one record after gating and deduplication::

    network  ->  anchor_dom  ->  block_dom  ->  done

* ``network``    — structural scan of the captured JSON payloads.
* ``anchor_dom`` — cards found by walking up from "see more" markers.
* ``block_dom``  — length/content filtered blocks under the review root.

Only one strategy's output is ever returned, so records from different
strategies are never mixed.  An empty result after all three is a normal
outcome, not an error.

The DOM snapshot is requested through an async loader and only when the
network strategy found nothing; it is read at most once per run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable

from config.settings import DEFAULT_THRESHOLDS, Thresholds
from dedupe import dedupe
from dom_locator import DomSnapshot, anchor_candidates, block_candidates
from json_scanner import scan
from parser import clean, normalize, parse_block

logger = logging.getLogger(__name__)

STRATEGY_ORDER = ("network", "anchor_dom", "block_dom")

SnapshotLoader = Callable[[], Awaitable[DomSnapshot]]


def _is_promotable(candidate: dict[str, Any]) -> bool:
    return all(candidate.get(k) is not None for k in ("reviewer", "rating", "text"))


def _collect(candidates: Iterable[dict[str, Any]], cap: int) -> list[dict[str, Any]]:
    """Keep complete candidates until *cap* have been gathered."""
    out: list[dict[str, Any]] = []
    for candidate in candidates:
        if not _is_promotable(candidate):
            continue
        out.append(candidate)
        if len(out) >= cap:
            break
    return out


def _raw_cap(limit: int, thresholds: Thresholds) -> int:
    return max(limit * thresholds.over_collect_factor, limit)


# =====================================================================
# Strategies
# =====================================================================


def network_strategy(
    payloads: Iterable[Any],
    limit: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> list[dict[str, Any]]:
    objects = (obj for payload in payloads for obj in scan(payload, thresholds))
    candidates = (normalize(obj, thresholds) for obj in objects)
    return dedupe(_collect(candidates, _raw_cap(limit, thresholds)), thresholds)


def anchor_strategy(
    snapshot: DomSnapshot,
    limit: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> list[dict[str, Any]]:
    blocks = anchor_candidates(snapshot, thresholds)
    candidates = (parse_block(b.text, strict=True, thresholds=thresholds) for b in blocks)
    return dedupe(_collect(candidates, _raw_cap(limit, thresholds)), thresholds)


def block_strategy(
    snapshot: DomSnapshot,
    limit: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> list[dict[str, Any]]:
    blocks = block_candidates(snapshot, thresholds)
    candidates = (parse_block(b.text, strict=True, thresholds=thresholds) for b in blocks)
    return dedupe(_collect(candidates, _raw_cap(limit, thresholds)), thresholds)


# =====================================================================
# Orchestrator
# =====================================================================


async def run_pipeline(
    payloads: Iterable[Any],
    load_snapshot: SnapshotLoader,
    limit: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> dict[str, Any]:
    """Run the strategies in order and return the first non-empty result.

    Returns ``{"reviews": [...], "strategy": name | None, "attempted": [...]}``
    where ``reviews`` has at most *limit* entries.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    attempted: list[str] = []
    if limit == 0:
        logger.info("Result limit is 0 — nothing to extract")
        return {"reviews": [], "strategy": None, "attempted": attempted}

    payloads = list(payloads)
    snapshot: DomSnapshot | None = None

    for name in STRATEGY_ORDER:
        attempted.append(name)
        if name == "network":
            records = network_strategy(payloads, limit, thresholds)
            logger.info(
                "Strategy %s: %d record(s) from %d payload(s)",
                name, len(records), len(payloads),
            )
        else:
            if snapshot is None:
                snapshot = await load_snapshot()
                logger.info("DOM snapshot loaded: %d element(s)", len(snapshot))
            strategy = anchor_strategy if name == "anchor_dom" else block_strategy
            records = strategy(snapshot, limit, thresholds)
            logger.info("Strategy %s: %d record(s)", name, len(records))

        if records:
            return {"reviews": records[:limit], "strategy": name, "attempted": attempted}

    logger.info("No strategy produced reviews (tried %s)", ", ".join(attempted))
    return {"reviews": [], "strategy": None, "attempted": attempted}


# =====================================================================
# Output document
# =====================================================================


def _utc_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_output(
    reviews: list[dict[str, Any]],
    *,
    profile_url: str,
    source: str = "whatnot",
    fetched_at: datetime | None = None,
) -> dict[str, Any]:
    """Shape the result set into the document handed to persistence."""
    rows = [
        {
            "reviewer": clean(r.get("reviewer")),
            "rating": r["rating"] if r.get("rating") is not None else 5.0,
            "text": clean(r.get("text")),
        }
        for r in reviews
    ]
    return {
        "source": source,
        "profile_url": profile_url,
        "fetched_at": _utc_timestamp(fetched_at),
        "count": len(rows),
        "reviews": rows,
    }
