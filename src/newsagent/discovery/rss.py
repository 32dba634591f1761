from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import feedparser
from bs4 import BeautifulSoup

from newsagent.discovery.url_classifier import URLClassifier
from newsagent.discovery.url_utils import absolutise, canonicalise_url, is_http_url
from newsagent.fetchers.http import HttpFetcher
from newsagent.utils import unique_ordered

COMMON_FEED_PATHS = (
    "/feed",
    "/rss",
    "/rss.xml",
    "/feed.xml",
    "/atom.xml",
    "/feed/rss",
    "/feeds/rss",
)

FEED_LINK_TYPES = {"application/rss+xml", "application/atom+xml", "application/feed+json"}


def candidate_feed_urls(base_url: str, feed_url: str | None = None) -> list[str]:
    urls = [feed_url] if feed_url else []
    urls.extend(absolutise(base_url, path) for path in COMMON_FEED_PATHS)
    return unique_ordered(url for url in urls if url)


def feed_links_from_html(html: str, base_url: str) -> list[str]:
    """``<link rel="alternate">`` feed URLs advertised by a page."""
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    for tag in soup.find_all("link", href=True):
        rel = tag.get("rel") or []
        rel_values = [value.lower() for value in (rel if isinstance(rel, list) else rel.split())]
        link_type = (tag.get("type") or "").lower()
        if "alternate" in rel_values and link_type in FEED_LINK_TYPES:
            absolute = absolutise(base_url, tag["href"])
            if absolute:
                links.append(absolute)
    return unique_ordered(links)


def entry_url(entry: Any) -> str | None:
    link = entry.get("link")
    if link and is_http_url(link):
        return link
    entry_id = entry.get("id")
    if entry_id and is_http_url(entry_id):
        return entry_id
    return None


def article_urls_from_feed(content: str, classifier: URLClassifier) -> list[str]:
    """Item links of a parsed feed that validate as article URLs.

    Only links are taken from the feed; its summaries never become content.
    """
    parsed = feedparser.parse(content)
    urls: list[str] = []
    for entry in getattr(parsed, "entries", []):
        link = entry_url(entry)
        if not link:
            continue
        canonical = canonicalise_url(link)
        if classifier.is_article_url(canonical):
            urls.append(canonical)
    return unique_ordered(urls)


@dataclass
class RSSDiscoverer:
    fetcher: HttpFetcher
    classifier: URLClassifier
    feed_url: str | None = None
    log: Callable[[str], None] | None = None

    async def discover(
        self,
        base_url: str,
        homepage_html: Callable[[], Awaitable[str | None]] | None = None,
    ) -> list[str]:
        """Article URLs from the first feed that yields any.

        Configured and well-known feed paths are probed before the homepage
        is fetched for ``<link rel="alternate">`` tags.
        """
        tried: set[str] = set()
        urls = await self._probe(candidate_feed_urls(base_url, self.feed_url), tried)
        if urls:
            return urls

        if homepage_html is None:
            return []
        html = await homepage_html()
        if not html:
            return []
        advertised = feed_links_from_html(html, base_url)
        self._log(f"[rss] Homepage advertises {len(advertised)} feeds")
        return await self._probe(advertised, tried)

    async def _probe(self, feed_urls: list[str], tried: set[str]) -> list[str]:
        for feed_url in feed_urls:
            if feed_url in tried:
                continue
            tried.add(feed_url)
            self._log(f"[rss] Fetching feed {feed_url}")
            result = await self.fetcher.fetch(feed_url)
            if not result.ok:
                self._log(f"[rss] Feed failed {feed_url}: {result.error or 'empty body'}")
                continue
            urls = article_urls_from_feed(result.content or "", self.classifier)
            self._log(f"[rss] {len(urls)} article links from {feed_url}")
            if urls:
                return urls
        return []

    def _log(self, message: str) -> None:
        if self.log:
            self.log(message)
