from .base import BaseScraper, launch_browser
from .whatnot import WhatnotScraper

__all__ = [
    "BaseScraper",
    "WhatnotScraper",
    "launch_browser",
]
