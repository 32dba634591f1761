from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup

from newsagent.discovery.url_classifier import URLClassifier
from newsagent.discovery.url_utils import absolutise, canonicalise_url
from newsagent.fetchers.http import HttpFetcher
from newsagent.utils import unique_ordered

SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
    "/sitemap_news.xml",
    "/sitemap-news.xml",
    "/post-sitemap.xml",
    "/page-sitemap.xml",
)


@dataclass(frozen=True)
class ParsedSitemap:
    is_index: bool
    locations: list[str]


def parse_sitemap(content: str) -> ParsedSitemap:
    soup = BeautifulSoup(content, "xml")
    index = soup.find("sitemapindex")
    if index is not None:
        locations = [loc.get_text(strip=True) for loc in index.find_all("loc")]
        return ParsedSitemap(True, [loc for loc in locations if loc])
    urlset = soup.find("urlset")
    if urlset is None:
        return ParsedSitemap(False, [])
    locations = [loc.get_text(strip=True) for loc in urlset.find_all("loc")]
    return ParsedSitemap(False, [loc for loc in locations if loc])


@dataclass
class SitemapDiscoverer:
    fetcher: HttpFetcher
    classifier: URLClassifier
    max_depth: int = 3
    max_child_sitemaps: int = 10
    log: Callable[[str], None] | None = None

    async def discover(self, base_url: str) -> list[str]:
        """Article URLs from the first well-known sitemap path that yields any."""
        seen: set[str] = set()
        for path in SITEMAP_PATHS:
            sitemap_url = absolutise(base_url, path)
            urls = await self.collect(sitemap_url, depth=0, seen=seen)
            if urls:
                return urls
        return []

    async def collect(self, sitemap_url: str, depth: int = 0, seen: set[str] | None = None) -> list[str]:
        """Flatten ``sitemap_url`` into article URLs.

        Index files are followed to at most ``max_depth`` levels and
        ``max_child_sitemaps`` children each; a sitemap is never read twice.
        """
        seen = seen if seen is not None else set()
        if sitemap_url in seen or depth > self.max_depth:
            return []
        seen.add(sitemap_url)

        self._log(f"[sitemap] Fetching {sitemap_url}")
        result = await self.fetcher.fetch(sitemap_url)
        if not result.ok:
            self._log(f"[sitemap] Sitemap failed {sitemap_url}: {result.error or 'empty body'}")
            return []

        parsed = parse_sitemap(result.content or "")
        if parsed.is_index:
            children = parsed.locations[: self.max_child_sitemaps]
            self._log(f"[sitemap] Index {sitemap_url} lists {len(parsed.locations)} sitemaps")
            urls: list[str] = []
            for child in children:
                urls.extend(await self.collect(child, depth + 1, seen))
            return unique_ordered(urls)

        articles = [
            canonicalise_url(location)
            for location in parsed.locations
            if self.classifier.is_article_url(location)
        ]
        self._log(f"[sitemap] {len(articles)} article URLs in {sitemap_url}")
        return unique_ordered(articles)

    def _log(self, message: str) -> None:
        if self.log:
            self.log(message)
