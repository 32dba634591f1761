from __future__ import annotations

import asyncio
import random
import time
from pathlib import Path
from typing import Any, Awaitable, Callable

from newsagent.config import AgentConfig
from newsagent.discovery.listing import HomepagePage, ListingDiscoverer
from newsagent.discovery.rss import RSSDiscoverer
from newsagent.discovery.sitemap import SitemapDiscoverer
from newsagent.discovery.strategies import SourceType, select_strategies
from newsagent.discovery.url_classifier import URLClassifier
from newsagent.discovery.url_utils import canonicalise_url
from newsagent.extraction import ArticleExtractor
from newsagent.fetchers.http import HttpFetcher
from newsagent.fetchers.playwright_fetcher import HardenedBrowser
from newsagent.models import AgentResult, DiscoveryMethod, ExtractionTrace, NormalizedArticle
from newsagent.reporting.logging import log_event
from newsagent.scoring.quality import ContentValidator
from newsagent.storage.memory_cache import ArticleCache
from newsagent.utils import chunked, unique_ordered

Sleep = Callable[[float], Awaitable[Any]]


class UniversalNewsAgent:
    """Discovers and extracts articles from a single publisher site.

    Discovery degrades from feeds to sitemaps to homepage scraping to
    extracting the seed URL itself, stopping at the first stage that yields
    an accepted article. One HTTP fetcher, one browser and one article cache
    are shared by every stage; call ``cleanup()`` (or use ``async with``)
    when done.
    """

    def __init__(
        self,
        config: AgentConfig,
        *,
        http: HttpFetcher | None = None,
        browser: HardenedBrowser | None = None,
        log: Callable[[str], None] | None = None,
        events_path: Path | None = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        config.require_url()
        self.config = config
        self.log = log
        self.events_path = events_path
        self.classifier = URLClassifier(config.url)
        self.http = http or HttpFetcher(
            timeout=config.fetch.timeout_s,
            max_attempts=config.fetch.max_attempts,
            backoff=config.fetch.backoff_s,
            user_agent=config.user_agent,
        )
        self.browser = browser or HardenedBrowser(
            timeout_s=config.browser.timeout_s,
            selector_timeout_s=config.browser.selector_timeout_s,
            launch_timeout_s=config.browser.launch_timeout_s,
            max_retries=config.browser.max_retries,
            max_pages=config.browser.max_pages,
            headless=config.browser.headless,
            user_agent=config.browser.user_agent,
            log=log,
        )
        self.cache = ArticleCache(ttl_s=config.cache_ttl_s)
        self.extractor = ArticleExtractor(
            fetcher=self.http,
            browser=self.browser,
            cache=self.cache,
            classifier=self.classifier,
            validator=ContentValidator(config.quality),
            log=log,
            events_path=events_path,
        )
        self.listing = ListingDiscoverer(self.http, self.browser, self.classifier, log=log)
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._homepage: HomepagePage | None = None

    async def __aenter__(self) -> "UniversalNewsAgent":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.cleanup()

    async def fetch_news(self, source_type: SourceType | str | None = None) -> AgentResult:
        """Run the discovery cascade; failures are reported in the result, never raised."""
        try:
            strategies = select_strategies(source_type or self.config.source_type)
        except ValueError as exc:
            return AgentResult([], False, DiscoveryMethod.EXTRACTION, str(exc))

        self._homepage = None
        errors: list[str] = []
        failed: dict[str, NormalizedArticle] = {}
        for method in strategies:
            started = time.perf_counter()
            self._log(f"[{method.value}] Starting discovery for {self.config.url}")
            try:
                result = await self._run_stage(method)
            except Exception as exc:
                result = AgentResult([], False, method, f"{type(exc).__name__}: {exc}")
            self._stage_event(method, result, started)

            if result.success:
                self._log(f"[{method.value}] {len(result.accepted)} articles accepted")
                return result
            self._log(f"[{method.value}] Stage failed: {result.error}")
            errors.append(f"{method.value}: {result.error}")
            for article in result.articles:
                failed.setdefault(article.url, article)

        return AgentResult(list(failed.values()), False, strategies[-1], "; ".join(errors))

    async def extract_article(self, url: str) -> NormalizedArticle:
        return await self.extractor.extract(url)

    async def extract_articles(self, urls: list[str], method: DiscoveryMethod) -> AgentResult:
        """Extract candidate URLs in polite, failure-isolated batches."""
        candidates = [
            url
            for url in unique_ordered(canonicalise_url(url) for url in urls)
            if self.classifier.classify(url).should_extract
        ][: self.config.max_articles]
        if not candidates:
            return AgentResult([], False, method, "No extractable article URLs found")

        self._log(f"[{method.value}] Extracting {len(candidates)} candidate articles")
        articles: list[NormalizedArticle] = []
        for batch in chunked(candidates, self.config.max_concurrency):
            await self._pause(self.config.politeness.batch_delay_ms)
            results = await asyncio.gather(
                *(self._extract_with_jitter(url) for url in batch),
                return_exceptions=True,
            )
            for url, outcome in zip(batch, results):
                if isinstance(outcome, BaseException):
                    trace = ExtractionTrace(failure_reason=f"Error during extraction: {outcome}")
                    articles.append(NormalizedArticle(source=self.classifier.base_hostname, url=url, extraction_trace=trace))
                else:
                    articles.append(outcome)

        accepted = [article for article in articles if not article.extraction_failed]
        if accepted:
            return AgentResult(articles, True, method)
        return AgentResult(articles, False, method, f"No article passed validation ({len(articles)} tried)")

    async def cleanup(self) -> None:
        await self.browser.cleanup()

    async def _run_stage(self, method: DiscoveryMethod) -> AgentResult:
        base_url = self.config.url
        if method is DiscoveryMethod.RSS:
            rss = RSSDiscoverer(self.http, self.classifier, feed_url=self.config.feed_url, log=self.log)
            urls = await rss.discover(base_url, self._homepage_html)
            if not urls:
                return AgentResult([], False, method, "No article links found in feeds")
            return await self.extract_articles(urls, method)

        if method is DiscoveryMethod.SITEMAP:
            sitemap = SitemapDiscoverer(
                self.http,
                self.classifier,
                max_depth=self.config.discovery.max_sitemap_depth,
                max_child_sitemaps=self.config.discovery.max_child_sitemaps,
                log=self.log,
            )
            urls = await sitemap.discover(base_url)
            if not urls:
                return AgentResult([], False, method, "No article URLs found in sitemaps")
            return await self.extract_articles(urls, method)

        if method is DiscoveryMethod.SCRAPING:
            page = await self._load_homepage()
            if not page.html:
                return AgentResult([], False, method, page.error or "Homepage could not be loaded")
            urls = self.listing.discover(page.html, base_url)
            if not urls:
                return AgentResult([], False, method, "No article links found on homepage")
            return await self.extract_articles(urls, method)

        article = await self.extract_article(base_url)
        if article.extraction_failed:
            return AgentResult([article], False, method, article.extraction_trace.failure_reason)
        return AgentResult([article], True, method)

    async def _load_homepage(self) -> HomepagePage:
        if self._homepage is None:
            self._homepage = await self.listing.fetch_page(self.config.url)
        return self._homepage

    async def _homepage_html(self) -> str | None:
        return (await self._load_homepage()).html

    async def _extract_with_jitter(self, url: str) -> NormalizedArticle:
        await self._pause(self.config.politeness.request_jitter_ms)
        return await self.extractor.extract(url)

    async def _pause(self, range_ms: tuple[int, int]) -> None:
        low, high = range_ms
        if high <= 0:
            return
        await self._sleep(self._rng.uniform(low, high) / 1000.0)

    def _stage_event(self, method: DiscoveryMethod, result: AgentResult, started: float) -> None:
        if self.events_path is None:
            return
        try:
            log_event(
                "discovery_stage",
                {
                    "url": self.config.url,
                    "method": method,
                    "success": result.success,
                    "articles": len(result.articles),
                    "accepted": len(result.accepted),
                    "error": result.error,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                },
                log_path=self.events_path,
                echo=False,
            )
        except OSError as exc:
            self._log(f"[{method.value}] Could not write event log: {exc}")

    def _log(self, message: str) -> None:
        if self.log:
            self.log(message)


async def run_agent(
    config: AgentConfig,
    source_type: SourceType | str | None = None,
    *,
    log: Callable[[str], None] | None = None,
    events_path: Path | None = None,
    **kwargs: Any,
) -> AgentResult:
    """Build an agent, run the cascade once and always release the browser."""
    agent = UniversalNewsAgent(config, log=log, events_path=events_path, **kwargs)
    try:
        return await agent.fetch_news(source_type)
    finally:
        await agent.cleanup()
