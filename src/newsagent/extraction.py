"""Per-article extraction.

``ArticleExtractor.extract`` walks one URL through cache lookup, URL
classification, plain HTTP fetching, browser escalation on bot challenges,
the generic extractor chain, root-scoring extraction, field backfill, the
quality gate and the hard structural gate. It always returns a
``NormalizedArticle``; every failure is recorded on the extraction trace.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from newsagent.config import QualityConfig
from newsagent.discovery.url_classifier import URLClassifier
from newsagent.discovery.url_utils import absolutise, source_domain
from newsagent.extractors.bs4_heuristic import Bs4HeuristicExtractor, Bs4SelectorExtractor
from newsagent.extractors.engine import ExtractionEngine
from newsagent.extractors.fields import (
    extract_author,
    extract_category,
    extract_description,
    extract_image,
    extract_language,
    extract_published,
    extract_title,
    parse_html,
)
from newsagent.extractors.readability import ReadabilityExtractor
from newsagent.extractors.trafilatura import TrafilaturaExtractor
from newsagent.fetchers.http import HttpFetcher
from newsagent.fetchers.playwright_fetcher import HardenedBrowser
from newsagent.fetchers.protection import NOT_PROTECTED, BotProtection, detect_bot_protection
from newsagent.models import ExtractionResult, ExtractionTrace, FetchResult, NormalizedArticle, UrlType
from newsagent.reporting.logging import log_event
from newsagent.scoring.heuristics import RSS_USED_AS_ARTICLE_SOURCE, check_hard_requirements
from newsagent.scoring.quality import ContentValidator
from newsagent.storage.memory_cache import ArticleCache

MIN_EXTRACTED_CHARS = 200
MIN_CACHED_CHARS = 300

LISTING_PAGE_DETECTED = "LISTING_PAGE_DETECTED"
FINAL_VALIDATION_FAILED = "FINAL_VALIDATION_FAILED"


def default_engine(log: Callable[[str], None] | None = None) -> ExtractionEngine:
    return ExtractionEngine(
        [TrafilaturaExtractor(), ReadabilityExtractor(), Bs4SelectorExtractor()],
        log=log,
    )


@dataclass
class _Page:
    html: str | None = None
    final_url: str = ""
    protection: BotProtection = NOT_PROTECTED
    error: str | None = None
    response: FetchResult | None = None
    rendered: bool = False

    @property
    def unresolved(self) -> bool:
        """A bot challenge was detected and the browser could not get past it."""
        return self.protection.protected and not self.rendered

    def detect_protection(self) -> BotProtection:
        if self.response is None:
            return NOT_PROTECTED
        response = self.response
        return detect_bot_protection(response.status_code, response.headers, response.content)


@dataclass
class ArticleExtractor:
    fetcher: HttpFetcher
    browser: HardenedBrowser
    cache: ArticleCache
    classifier: URLClassifier | None = None
    validator: ContentValidator = field(default_factory=lambda: ContentValidator(QualityConfig()))
    engine: ExtractionEngine | None = None
    enhanced: Bs4HeuristicExtractor = field(default_factory=Bs4HeuristicExtractor)
    log: Callable[[str], None] | None = None
    events_path: Path | None = None

    def __post_init__(self) -> None:
        if self.engine is None:
            self.engine = default_engine(self.log)

    async def extract(self, url: str) -> NormalizedArticle:
        try:
            article = await self._extract(url)
        except Exception as exc:
            trace = ExtractionTrace(failure_reason=f"Error during extraction: {exc}")
            article = _failed(url, trace)
            self.cache.set(url, article)
        self._record(article)
        return article

    async def _extract(self, url: str) -> NormalizedArticle:
        cached = self.cache.get(url)
        if cached is not None and self._reusable(cached):
            self._log(f"[extract] Cache hit {url}")
            return cached

        if self.classifier is not None:
            classification = self.classifier.classify(url)
            if classification.type in {UrlType.LISTING, UrlType.CATEGORY}:
                self._log(f"[extract] Skipping listing page {url}")
                trace = ExtractionTrace(failure_reason=LISTING_PAGE_DETECTED, is_listing_page=True)
                article = _failed(url, trace)
                self.cache.set(url, article)
                return article

        trace = ExtractionTrace()
        page = await self._fetch_html(url, trace)
        generic = self._run_chain(page.html, page.final_url)

        # Bot protection is only checked once the plain HTML has failed to yield
        # an article; challenge scripts also ship on ordinary pages.
        if not _sufficient(generic):
            page.protection = page.detect_protection()
            if page.protection.protected:
                trace.bot_protection = page.protection.challenge
                trace.fallback_used = True
                trace.fetch_method = "js"
                self._log(f"[extract] Bot protection on {url} ({page.protection.challenge}), using browser")
                rendered = await self.browser.fetch_with_retry(url)
                if rendered:
                    page.html = rendered
                    page.rendered = True
                    trace.url_fetched = True
                    generic = self._run_chain(rendered, page.final_url)

        if page.html is None or generic is None or not _sufficient(generic):
            trace.failure_reason = _insufficient_reason(page, generic)
            if page.html and not page.unresolved and self.validator.is_listing_page(page.html, page.final_url):
                trace.failure_reason = LISTING_PAGE_DETECTED
                trace.is_listing_page = True
            if generic is not None:
                trace.content_length = generic.content_length
                trace.paragraphs_found = len(generic.paragraphs)
            article = _failed(page.final_url or url, trace, title=(generic.title or "") if generic else "")
            self.cache.set(url, article)
            return article

        article = self._build_article(page.html, page.final_url, generic, trace)
        self.cache.set(url, article)
        return article

    async def _fetch_html(self, url: str, trace: ExtractionTrace) -> _Page:
        result = await self.fetcher.fetch(url)
        page = _Page(final_url=result.url or url, error=result.error, response=result)
        if result.ok:
            page.html = result.content
            trace.url_fetched = True
        return page

    def _run_chain(self, html: str | None, url: str) -> ExtractionResult | None:
        if not html or self.engine is None:
            return None
        return self.engine.run(html, url)

    def _build_article(
        self,
        html: str,
        url: str,
        generic: ExtractionResult,
        trace: ExtractionTrace,
    ) -> NormalizedArticle:
        enhanced = self.enhanced.extract(html, url)
        soup = parse_html(html)

        if enhanced.text:
            content = enhanced.text
            paragraphs = enhanced.paragraphs
            trace.root_selector = enhanced.root_selector or ""
        else:
            content = generic.text or ""
            paragraphs = generic.paragraphs
            trace.root_selector = generic.method
        trace.paragraphs_found = len(paragraphs)
        trace.content_length = len(content)

        title = generic.title or enhanced.title or extract_title(soup)
        description = generic.description or enhanced.description or extract_description(soup)
        image = generic.image or enhanced.image or extract_image(soup, url)
        author = generic.author or enhanced.author or extract_author(soup)
        published_at = generic.published_at or enhanced.published_at or extract_published(soup)
        category = generic.category or enhanced.category or extract_category(soup)

        quality = self.validator.validate(content, title, url, html=html)
        trace.quality_score = quality.score
        trace.quality_reasons = list(quality.reasons)
        trace.is_listing_page = quality.is_listing_page
        trace.is_contact_page = quality.is_contact_page
        trace.is_advertisement = quality.is_advertisement

        article = NormalizedArticle(
            source=source_domain(url),
            url=url,
            title=title,
            description=description,
            content=content,
            image=absolutise(url, image),
            author=author,
            published_at=published_at,
            category=category,
            language=extract_language(soup),
            extraction_trace=trace,
            extraction_failed=True,
        )

        hard_failure = check_hard_requirements(article)
        if hard_failure == RSS_USED_AS_ARTICLE_SOURCE:
            trace.failure_reason = hard_failure
        elif not quality.is_valid:
            trace.failure_reason = f"{FINAL_VALIDATION_FAILED}: " + "; ".join(quality.reasons)
        else:
            trace.failure_reason = hard_failure

        return dataclasses.replace(article, extraction_failed=trace.failure_reason is not None)

    def _reusable(self, cached: NormalizedArticle) -> bool:
        if cached.extraction_failed or not cached.description:
            return False
        if len(cached.content) < MIN_CACHED_CHARS:
            return False
        return self.validator.validate(cached.content, cached.title, cached.url).is_valid

    def _record(self, article: NormalizedArticle) -> None:
        trace = article.extraction_trace
        if article.extraction_failed:
            self._log(f"[extract] Rejected {article.url}: {trace.failure_reason}")
        else:
            self._log(f"[extract] Accepted {article.url} ({trace.content_length} chars, score {trace.quality_score})")
        if self.events_path is None:
            return
        try:
            log_event(
                "article_extracted",
                {
                    "url": article.url,
                    "accepted": not article.extraction_failed,
                    "trace": trace,
                },
                log_path=self.events_path,
                echo=False,
            )
        except OSError as exc:
            self._log(f"[extract] Could not write event log: {exc}")

    def _log(self, message: str) -> None:
        if self.log:
            self.log(message)


def _sufficient(result: ExtractionResult | None) -> bool:
    return result is not None and result.content_length >= MIN_EXTRACTED_CHARS


def _insufficient_reason(page: _Page, generic: ExtractionResult | None) -> str:
    if page.unresolved:
        return f"BOT_PROTECTION_UNRESOLVED: {page.protection.challenge}"
    if page.html is None:
        return f"FETCH_FAILED: {page.error or 'empty response'}"
    length = generic.content_length if generic is not None else 0
    return f"INSUFFICIENT_CONTENT: {length} chars extracted (< {MIN_EXTRACTED_CHARS})"


def _failed(url: str, trace: ExtractionTrace, title: str = "") -> NormalizedArticle:
    return NormalizedArticle(
        source=source_domain(url),
        url=url,
        title=title,
        extraction_trace=trace,
        extraction_failed=True,
    )
