"""
Structural scan of captured JSON payloads for review-shaped objects.

API responses on the profile page have no stable schema, so nothing here
looks at paths.  Every array anywhere in the payload is inspected; an
element is *review-like* when its own key names (case-insensitive,
substring match) cover all three of:

  * a rating term:   ``rating``, ``stars``, ``score``
  * a text term:     ``text``, ``message``, ``comment``, ``review``
  * a user term:     ``username``, ``reviewer``, ``buyer``, ``user``

Matches are collected per array in document order, then the walk
continues into every element of that array so nested collections
(``{"data": {"reviews": [{"replies": [...]}]}}``) are found too.
"""

from __future__ import annotations

import logging
from typing import Any

from config.settings import DEFAULT_THRESHOLDS, Thresholds

logger = logging.getLogger(__name__)

RATING_TERMS = ("rating", "stars", "score")
TEXT_TERMS = ("text", "message", "comment", "review")
USER_TERMS = ("username", "reviewer", "buyer", "user")


def _has_term(keys: list[str], terms: tuple[str, ...]) -> bool:
    return any(term in key for key in keys for term in terms)


def is_review_like(obj: Any) -> bool:
    """Classify one array element by its key set."""
    if not isinstance(obj, dict):
        return False
    keys = [str(k).lower() for k in obj]
    return (
        _has_term(keys, RATING_TERMS)
        and _has_term(keys, TEXT_TERMS)
        and _has_term(keys, USER_TERMS)
    )


def scan(payload: Any, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[dict[str, Any]]:
    """Return every review-like object in *payload*, in document order.

    No deduplication happens here.  Walks deeper than ``json_max_depth``
    are abandoned, and a container that is already on the current path
    is not entered again, so self-referencing structures contribute each
    review once.
    """
    found: list[dict[str, Any]] = []
    _walk(payload, found, 0, set(), thresholds)
    return found


def _walk(
    node: Any,
    found: list[dict[str, Any]],
    depth: int,
    path: set[int],
    thresholds: Thresholds,
) -> None:
    if not isinstance(node, (dict, list)):
        return
    if depth > thresholds.json_max_depth:
        logger.debug("JSON walk abandoned at depth %d", depth)
        return
    if id(node) in path:
        logger.debug("JSON walk skipped a back-reference at depth %d", depth)
        return

    path.add(id(node))
    try:
        if isinstance(node, dict):
            for value in node.values():
                _walk(value, found, depth + 1, path, thresholds)
        else:
            batch = [el for el in node if is_review_like(el)]
            if batch:
                found.extend(batch[: thresholds.json_batch_cap])
            for el in node:
                _walk(el, found, depth + 1, path, thresholds)
    finally:
        path.discard(id(node))
