"""
Whatnot profile review scraper entry point.

Loads the profile page, extracts up to N reviews, and writes them as a
JSON document.

Usage:
    python main.py                                   # defaults below
    python main.py --url https://www.whatnot.com/user/<handle>/reviews
    python main.py --limit 10 --output reviews.json

Environment variables (CLI flags win):
    TARGET_URL=...       # profile reviews URL
    RESULT_LIMIT=6       # max reviews in the output
    OUTPUT_PATH=...      # where the JSON document is written
    LOG_LEVEL=INFO
    DEBUG_DIR=...        # screenshots/HTML when a run finds nothing
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from config.settings import DEFAULT_OUTPUT_PATH, DEFAULT_RESULT_LIMIT, DEFAULT_TARGET_URL
from pipeline import build_output
from platforms import WhatnotScraper

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("orchestrator")


def positive_int(value: str) -> int:
    """argparse type for ``--limit``."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract reviews from a Whatnot seller profile")
    parser.add_argument(
        "--url", default=os.getenv("TARGET_URL", DEFAULT_TARGET_URL),
        help="Profile reviews URL",
    )
    parser.add_argument(
        "--limit", type=positive_int,
        default=os.getenv("RESULT_LIMIT", str(DEFAULT_RESULT_LIMIT)),
        help="Maximum number of reviews to keep",
    )
    parser.add_argument(
        "--output", default=os.getenv("OUTPUT_PATH", DEFAULT_OUTPUT_PATH),
        help="Output JSON path",
    )
    return parser.parse_args(argv)


def write_output(document: dict[str, Any], path: str | Path) -> Path:
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


async def run(url: str, limit: int, output: str) -> dict[str, Any]:
    """Scrape one profile and write the output document."""
    start = time.time()

    logger.info("=" * 60)
    logger.info("Review Scraper Starting")
    logger.info("  URL:     %s", url)
    logger.info("  LIMIT:   %d", limit)
    logger.info("  OUTPUT:  %s", output)
    logger.info("=" * 60)

    async with WhatnotScraper(url) as scraper:
        result = await scraper.scrape(limit)

    document = build_output(result["reviews"], profile_url=url, source=WhatnotScraper.source)
    path = write_output(document, output)

    logger.info(
        "Saved %s with %d reviews (strategy=%s, tried=%s, %.1fs)",
        path, document["count"], result["strategy"] or "none",
        ",".join(result["attempted"]), time.time() - start,
    )
    return document


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        asyncio.run(run(args.url, args.limit, args.output))
    except Exception:
        logger.exception("Scrape failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
