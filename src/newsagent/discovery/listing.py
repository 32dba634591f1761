from __future__ import annotations

from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Callable

from newsagent.discovery.url_classifier import URLClassifier
from newsagent.discovery.url_utils import absolutise, canonicalise_url
from newsagent.fetchers.http import HttpFetcher
from newsagent.fetchers.playwright_fetcher import HardenedBrowser
from newsagent.fetchers.protection import detect_bot_protection
from newsagent.utils import unique_ordered

SPA_MARKERS = (
    "window.__INITIAL_STATE__",
    "window.__PRELOADED_STATE__",
    "window.APP_DATA",
    'id="app"',
    'id="root"',
    "data-reactroot",
    'id="__next"',
)


class _LinkExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.links: list[tuple[str, str]] = []
        self._current_href: str | None = None
        self._text_parts: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag.lower() != "a":
            return
        href = None
        for key, value in attrs:
            if key.lower() == "href" and value:
                href = value
                break
        self._current_href = href
        self._text_parts = []

    def handle_data(self, data: str) -> None:
        if self._current_href is not None:
            self._text_parts.append(data)

    def handle_endtag(self, tag: str) -> None:
        if tag.lower() != "a":
            return
        if self._current_href:
            text = " ".join(part.strip() for part in self._text_parts if part.strip())
            self.links.append((self._current_href, text))
        self._current_href = None
        self._text_parts = []


def extract_links(html: str) -> list[tuple[str, str]]:
    parser = _LinkExtractor()
    parser.feed(html)
    return parser.links


def has_spa_markers(html: str) -> bool:
    return any(marker in html for marker in SPA_MARKERS)


def article_urls_from_html(html: str, base_url: str, classifier: URLClassifier) -> list[str]:
    urls: list[str] = []
    for href, _text in extract_links(html):
        absolute = absolutise(base_url, href)
        if not absolute:
            continue
        canonical = canonicalise_url(absolute)
        if classifier.is_article_url(canonical):
            urls.append(canonical)
    return unique_ordered(urls)


@dataclass
class HomepagePage:
    html: str | None
    fetch_method: str = "html"
    error: str | None = None


@dataclass
class ListingDiscoverer:
    fetcher: HttpFetcher
    browser: HardenedBrowser
    classifier: URLClassifier
    log: Callable[[str], None] | None = None

    async def fetch_page(self, url: str) -> HomepagePage:
        """Fetch a crawl page, rendering it in the browser when plain HTML is not enough.

        Plain HTML that already links to articles is used as is. Otherwise the
        browser is used when the HTTP fetch failed, the response is a bot
        challenge, or the body looks like a client-rendered app shell.
        """
        result = await self.fetcher.fetch(url)
        content = result.content or ""
        if result.ok and article_urls_from_html(content, url, self.classifier):
            return HomepagePage(result.content, "html")

        protection = detect_bot_protection(result.status_code, result.headers, result.content)
        if protection.protected:
            reason = f"bot protection ({protection.challenge})"
        elif not result.ok:
            reason = f"fetch failed ({result.error or 'empty body'})"
        elif has_spa_markers(content):
            reason = "client-rendered page"
        else:
            return HomepagePage(result.content, "html")

        self._log(f"[scraping] Rendering {url} in browser: {reason}")
        html = await self.browser.fetch_with_retry(url)
        if html:
            return HomepagePage(html, "js")
        if result.ok and not protection.protected:
            return HomepagePage(result.content, "html")
        return HomepagePage(None, "js", error=f"Could not load {url}: {reason}")

    def discover(self, html: str, base_url: str) -> list[str]:
        urls = article_urls_from_html(html, base_url, self.classifier)
        self._log(f"[scraping] {len(urls)} article links on {base_url}")
        return urls

    def _log(self, message: str) -> None:
        if self.log:
            self.log(message)
