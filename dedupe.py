"""
Candidate gating and exact-match deduplication.

A candidate becomes a review record only if it has a valid reviewer
handle, a rating in range, and a body of at least ``min_body_chars``.
Uniqueness is keyed on the literal ``(reviewer, rating, cleaned text)``
triple; near-duplicates are kept on purpose.
"""

from __future__ import annotations

from typing import Any, Iterable

from config.settings import DEFAULT_THRESHOLDS, Thresholds
from parser import clean, is_valid_reviewer


def gate(candidate: dict[str, Any], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> dict[str, Any] | None:
    """Return the cleaned record, or ``None`` if *candidate* is incomplete."""
    reviewer = clean(candidate.get("reviewer"))
    text = clean(candidate.get("text"))
    rating = candidate.get("rating")

    if not is_valid_reviewer(reviewer, thresholds):
        return None
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        return None
    if not thresholds.rating_min <= rating <= thresholds.rating_max:
        return None
    if len(text) < thresholds.min_body_chars:
        return None
    return {"reviewer": reviewer, "rating": float(rating), "text": text}


def dedupe(
    candidates: Iterable[dict[str, Any]],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> list[dict[str, Any]]:
    """Gate, then drop exact repeats, keeping first-seen order.

    Idempotent: running it on its own output returns the same list.
    """
    seen: set[tuple[str, float, str]] = set()
    unique: list[dict[str, Any]] = []
    for candidate in candidates:
        record = gate(candidate, thresholds)
        if record is None:
            continue
        key = (record["reviewer"], record["rating"], record["text"])
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
