"""
Scraper configuration: browser defaults, per-source settings, and the
heuristic thresholds used by the review extractors.

Every number in ``Thresholds`` was tuned empirically against the Whatnot
profile reviews page.  None of them has a derivation beyond "this is what
the page looked like", so they are grouped in one frozen dataclass that
callers can override with ``dataclasses.replace``::

    th = replace(DEFAULT_THRESHOLDS, card_max_len=1200)
    records = anchor_strategy(snapshot, limit=6, thresholds=th)

Invocation parameters (target URL, result limit, output path) are read from
the environment by ``main.py`` after ``load_dotenv()``; the defaults below
are used when neither a CLI flag nor an env var is given.
"""

from __future__ import annotations

import random as _random
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Invocation defaults
# ---------------------------------------------------------------------------

DEFAULT_TARGET_URL = "https://www.whatnot.com/user/collectingfever/reviews"
DEFAULT_OUTPUT_PATH = "whatnot-reviews.json"
DEFAULT_RESULT_LIMIT = 6

# ---------------------------------------------------------------------------
# Browser / Playwright defaults
# ---------------------------------------------------------------------------

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

# Pool of desktop Chrome User-Agents, rotated per browser context.
_USER_AGENT_POOL = [
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
]


def get_user_agent() -> str:
    """Return a randomly selected desktop Chrome User-Agent."""
    return _random.choice(_USER_AGENT_POOL)


def get_viewport() -> dict[str, int]:
    """Return a 1280x900 viewport with a small random offset."""
    return {
        "width": 1280 + _random.randint(-16, 16),
        "height": 900 + _random.randint(-8, 8),
    }


# 'domcontentloaded', not 'networkidle': the reviews page keeps a
# websocket and analytics beacons open forever.
WAIT_UNTIL = "domcontentloaded"

GOTO_TIMEOUT_MS = 60_000

# ---------------------------------------------------------------------------
# Source-level configuration
# ---------------------------------------------------------------------------

SOURCE_DEFAULTS = {
    "whatnot": {
        "settle_after_goto_sec": 1.5,
        # Accessible names of buttons that close the signup / app-install
        # overlays.  Matched case-insensitively.
        "popup_buttons": ["not now", "no thanks", "close"],
        "popup_click_timeout_ms": 1_500,
        # Reviews lazy-load as the list scrolls into view.
        "scroll_steps": 4,
        "scroll_delta_y": 900,
        "scroll_pause_sec": 0.9,
    },
}

# ---------------------------------------------------------------------------
# Extraction thresholds
# ---------------------------------------------------------------------------

# Non-review content: follower/following counters, "N sold" badges, the
# aggregate "(N reviews) • N sold" header, and site boilerplate.  The bare
# site name is not noise: buyers mention it in review text.
_NOISE_PATTERNS = (
    r"\b\d[\d,.]*\s*[km]?\s+followers?\b",
    r"\b\d[\d,.]*\s*[km]?\s+following\b",
    r"\b\d[\d,.]*\s*[km]?\s+sold\b",
    r"reviews?\s*\)\s*•\s*\d[\d,.]*\s*[km]?\s+sold",
    r"\bjoin whatnot\b",
    r"\bget the whatnot app\b",
    r"\bwhatnot,? inc\b",
    r"(?:©|\(c\))\s*(?:\d{4}\s+)?whatnot\b",
    r"\bsign\s*up\b",
    r"\blog\s*in\b",
    r"\bdownload the app\b",
)


@dataclass(frozen=True)
class Thresholds:
    # ReviewRecord bounds
    rating_min: float = 0.0
    rating_max: float = 5.0
    reviewer_min_len: int = 3
    reviewer_max_len: int = 25
    min_body_chars: int = 10
    min_body_words: int = 5  # loose (single-pass) block parse only

    # DOM card window: anything outside (card_min_len, card_max_len) is
    # either a fragment or a container of many cards.
    card_min_len: int = 40
    card_max_len: int = 900
    ancestor_depth: int = 10
    block_scan_cap: int = 60
    expand_marker_max_len: int = 24
    snapshot_text_cap: int = 4_000

    # Raw candidates collected per requested record before dedupe.
    over_collect_factor: int = 3

    # JSON walk bounds
    json_max_depth: int = 100
    json_batch_cap: int = 200

    expand_markers: tuple[str, ...] = ("see more",)
    noise_patterns: tuple[str, ...] = _NOISE_PATTERNS


DEFAULT_THRESHOLDS = Thresholds()
