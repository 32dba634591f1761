"""HTTP and browser fetchers."""

from __future__ import annotations

__all__ = [
    "BrowserFetchError",
    "BrowserTimeoutError",
    "HardenedBrowser",
    "HttpFetcher",
    "detect_bot_protection",
]

from newsagent.fetchers.http import HttpFetcher
from newsagent.fetchers.playwright_fetcher import BrowserFetchError, BrowserTimeoutError, HardenedBrowser
from newsagent.fetchers.protection import detect_bot_protection
