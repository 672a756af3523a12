"""
Review text parser.

Two halves:

* The **text block classifier** looks at one flattened, whitespace-collapsed
  text block (as read from the rendered page) and answers four questions:
  is there a rating token, a reviewer handle, an expand marker ("see more"),
  and is the block known non-review noise.  ``parse_block`` combines them
  into a candidate ``{reviewer, rating, text}`` dict.
* The **field normalizer** maps an arbitrarily keyed JSON object (from a
  captured API response) to the same candidate shape.

All functions are pure (no I/O) and operate on plain strings and dicts so
they are easy to unit-test independently of Playwright.  Candidates may be
partial; rejection happens in ``dedupe.gate``.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from config.settings import DEFAULT_THRESHOLDS, Thresholds

_RE_WHITESPACE = re.compile(r"\s+")


def clean(value: Any) -> str:
    """Collapse whitespace runs to one space and trim.

    >>> clean("  Fast\\n\\n shipping ")
    'Fast shipping'
    >>> clean(None)
    ''
    """
    if value is None:
        return ""
    return _RE_WHITESPACE.sub(" ", str(value)).strip()


# =====================================================================
# 1. Token probes
# =====================================================================

# "4.8": one digit 0-5, a dot, one digit.  Word boundaries keep "14.8"
# and "4.85" out.
_RE_RATING = re.compile(r"\b([0-5]\.\d)\b")
_RE_LEADING_RATING = re.compile(r"^[0-5]\.\d\b\s*")

# "11/11/2025", "3/4/25"
_RE_DATE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b")
_RE_LEADING_DATE = re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}\b\s*")


@lru_cache(maxsize=8)
def _reviewer_patterns(min_len: int, max_len: int) -> tuple[re.Pattern, re.Pattern, re.Pattern]:
    body = rf"[A-Za-z0-9_]{{{min_len},{max_len}}}"
    return (
        re.compile(rf"\b{body}\b"),          # anywhere
        re.compile(rf"^{body}\b"),           # anchored at start
        re.compile(rf"{body}"),              # whole-string check
    )


@lru_cache(maxsize=8)
def _noise_regex(patterns: tuple[str, ...]) -> re.Pattern:
    return re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE)


def rating_token(text: str) -> float | None:
    """Return the first ``[0-5].d`` token in *text* as a float.

    >>> rating_token("bob 4.8 11/11/2025 Great")
    4.8
    >>> rating_token("no rating here") is None
    True
    """
    m = _RE_RATING.search(text or "")
    return float(m.group(1)) if m else None


def reviewer_token(
    text: str,
    *,
    anchored: bool = False,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> str | None:
    """Return the first alphanumeric/underscore handle in *text*.

    With ``anchored=True`` the handle must start the string (strict card
    parsing); otherwise the first match anywhere is returned.
    """
    anywhere, at_start, _ = _reviewer_patterns(
        thresholds.reviewer_min_len, thresholds.reviewer_max_len,
    )
    m = (at_start if anchored else anywhere).search(text or "")
    return m.group(0) if m else None


def is_valid_reviewer(name: str | None, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    if not name:
        return False
    _, _, whole = _reviewer_patterns(
        thresholds.reviewer_min_len, thresholds.reviewer_max_len,
    )
    return whole.fullmatch(name) is not None


def date_token(text: str) -> str | None:
    m = _RE_DATE.search(text or "")
    return m.group(0) if m else None


def is_noise(text: str, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    """True if *text* carries a phrase that only appears outside reviews.

    >>> is_noise("1,204 followers • 350 following")
    True
    >>> is_noise("Fast shipping, card arrived in perfect shape")
    False
    """
    return _noise_regex(thresholds.noise_patterns).search(text or "") is not None


def _expand_index(text: str, thresholds: Thresholds) -> int:
    low = (text or "").lower()
    hits = [i for i in (low.find(m) for m in thresholds.expand_markers) if i >= 0]
    return min(hits) if hits else -1


def has_trailing_expand(text: str, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    """True if a "see more" style marker is present in *text*."""
    return _expand_index(text, thresholds) >= 0


# =====================================================================
# 2. Block parsing
# =====================================================================


def extract_body(
    text: str,
    reviewer: str | None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> str:
    """Cut *text* at the expand marker and strip the card header.

    The header is the reviewer handle, then a date stamp and a rating
    token in whichever order the card renders them.  Each is removed once.

    >>> extract_body("bob_the_builder 4.8 11/11/2025 Fast shipment see more", "bob_the_builder")
    'Fast shipment'
    """
    idx = _expand_index(text, thresholds)
    body = clean(text[:idx] if idx > 0 else text)

    if reviewer and body.startswith(reviewer):
        body = body[len(reviewer):].lstrip()

    # Cards render "handle 4.8 11/11/2025 ...", so a fixed date-then-rating
    # pass would strip the rating and leave the date in the body.
    date_done = rating_done = False
    for _ in range(2):
        if not date_done and _RE_LEADING_DATE.match(body):
            body = _RE_LEADING_DATE.sub("", body, count=1)
            date_done = True
        elif not rating_done and _RE_LEADING_RATING.match(body):
            body = _RE_LEADING_RATING.sub("", body, count=1)
            rating_done = True
    return body.strip()


def parse_block(
    text: str,
    *,
    strict: bool = True,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> dict[str, Any]:
    """Parse one flattened card into a candidate ``{reviewer, rating, text}``.

    ``strict=True`` (the DOM card strategies): the reviewer handle must open
    the block, the header is stripped from the body, and the body must be at
    least ``min_body_chars`` long.

    ``strict=False`` (single-pass block scan): the first handle and rating
    anywhere are taken, the body is everything before the expand marker,
    and it must have at least ``min_body_words`` words.  Neither pipeline
    strategy uses it; it is kept for callers that score a lone text block
    without a card structure.

    Missing pieces come back as ``None``.
    """
    text = clean(text)
    rating = rating_token(text)
    reviewer = reviewer_token(text, anchored=strict, thresholds=thresholds)

    if strict:
        body: str | None = extract_body(text, reviewer, thresholds)
        if len(body) < thresholds.min_body_chars:
            body = None
    else:
        idx = _expand_index(text, thresholds)
        body = clean(text[:idx] if idx > 0 else text)
        if len(body.split(" ")) < thresholds.min_body_words:
            body = None

    return {"reviewer": reviewer, "rating": rating, "text": body}


# =====================================================================
# 3. Field normalizer (JSON objects)
# =====================================================================

_RATING_KEYS = ("rating", "stars", "score")
# Sub-objects that sometimes wrap the numeric value:
#   {"rating": {"value": 4.5}}, {"feedback": {"stars": 5}}
_RATING_NESTED = (
    ("rating", ("value", "score", "stars", "rating")),
    ("feedback", _RATING_KEYS),
    ("review", _RATING_KEYS),
)

_REVIEWER_KEYS = ("reviewer", "username")
_REVIEWER_PARENTS = ("user", "buyer", "reviewer")
_REVIEWER_NESTED_KEYS = ("username", "name", "handle")

_TEXT_KEYS = ("text", "message", "comment", "review", "body", "content")
_TEXT_PARENTS = ("feedback",)

_RE_NUMERIC = re.compile(r"^[+-]?\d+(?:\.\d+)?$")


def coerce_rating(value: Any, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> float | None:
    """Numbers and digit strings become floats; anything else, or anything
    outside the rating range, is ``None``.

    >>> coerce_rating("4.7")
    4.7
    >>> coerce_rating(True) is None
    True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        rating = float(value)
    elif isinstance(value, str) and _RE_NUMERIC.match(value.strip()):
        rating = float(value.strip())
    else:
        return None
    if not thresholds.rating_min <= rating <= thresholds.rating_max:
        return None
    return rating


def _first_str(obj: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str) and clean(value):
            return clean(value)
    return None


def _resolve_rating(obj: dict[str, Any], thresholds: Thresholds) -> float | None:
    for key in _RATING_KEYS:
        rating = coerce_rating(obj.get(key), thresholds)
        if rating is not None:
            return rating
    for parent, keys in _RATING_NESTED:
        sub = obj.get(parent)
        if not isinstance(sub, dict):
            continue
        for key in keys:
            rating = coerce_rating(sub.get(key), thresholds)
            if rating is not None:
                return rating
    return None


def _resolve_reviewer(obj: dict[str, Any]) -> str | None:
    name = _first_str(obj, _REVIEWER_KEYS)
    if name:
        return name
    for parent in _REVIEWER_PARENTS:
        sub = obj.get(parent)
        if isinstance(sub, dict):
            name = _first_str(sub, _REVIEWER_NESTED_KEYS)
            if name:
                return name
    return None


def _resolve_text(obj: dict[str, Any]) -> str | None:
    text = _first_str(obj, _TEXT_KEYS)
    if text:
        return text
    for parent in _TEXT_PARENTS:
        sub = obj.get(parent)
        if isinstance(sub, dict):
            text = _first_str(sub, _TEXT_KEYS)
            if text:
                return text
    return None


def normalize(obj: dict[str, Any], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> dict[str, Any]:
    """Map an unknown-schema review object to ``{reviewer, rating, text}``.

    >>> normalize({"username": "alice99", "stars": "4.7", "comment": "Great seller, fast shipping!"})
    {'reviewer': 'alice99', 'rating': 4.7, 'text': 'Great seller, fast shipping!'}
    """
    if not isinstance(obj, dict):
        return {"reviewer": None, "rating": None, "text": None}
    return {
        "reviewer": _resolve_reviewer(obj),
        "rating": _resolve_rating(obj, thresholds),
        "text": _resolve_text(obj),
    }
