from __future__ import annotations

import asyncio

from conftest import (
    ARTICLE_TITLE,
    RecordingRoutes,
    StubBrowser,
    build_article_html,
    html_response,
    make_fetcher,
)

from newsagent.discovery.url_classifier import URLClassifier
from newsagent.extraction import ArticleExtractor
from newsagent.storage.memory_cache import ArticleCache

ARTICLE_URL = "https://example.com/news/harbour-festival-draws-record-crowds"
CHALLENGE = "<html><head><title>Just a moment...</title></head><body>Checking your browser</body></html>"


def _extractor(routes: RecordingRoutes, browser: StubBrowser | None = None) -> ArticleExtractor:
    return ArticleExtractor(
        fetcher=make_fetcher(routes),
        browser=browser or StubBrowser(),
        cache=ArticleCache(),
        classifier=URLClassifier("https://example.com"),
    )


def test_extracts_accepted_article(article_html: str) -> None:
    routes = RecordingRoutes({ARTICLE_URL: html_response(article_html)})

    article = asyncio.run(_extractor(routes).extract(ARTICLE_URL))

    assert not article.extraction_failed, article.extraction_trace.failure_reason
    assert article.source == "example.com"
    assert article.title == ARTICLE_TITLE
    assert article.description.startswith("Families gathered along the waterfront")
    assert article.image == "https://example.com/images/festival.jpg"
    assert article.language == "en"
    assert article.published_at is not None
    assert article.published_at.startswith("2026-01-26")
    assert "lantern parade" in article.content

    trace = article.extraction_trace
    assert trace.url_fetched
    assert trace.fetch_method == "html"
    assert trace.root_selector == "article"
    assert trace.paragraphs_found == 4
    assert trace.content_length == len(article.content)
    assert trace.failure_reason is None
    assert not trace.fallback_used


def test_cached_article_is_reused(article_html: str) -> None:
    routes = RecordingRoutes({ARTICLE_URL: html_response(article_html)})
    extractor = _extractor(routes)

    async def run():
        first = await extractor.extract(ARTICLE_URL)
        second = await extractor.extract(ARTICLE_URL + "?utm_source=home")
        return first, second

    first, second = asyncio.run(run())

    assert second is first
    assert routes.requests == [ARTICLE_URL]


def test_listing_url_is_not_fetched() -> None:
    routes = RecordingRoutes()

    article = asyncio.run(_extractor(routes).extract("https://example.com/category/local"))

    assert article.extraction_failed
    assert article.extraction_trace.failure_reason == "LISTING_PAGE_DETECTED"
    assert article.extraction_trace.is_listing_page
    assert routes.requests == []


def test_bot_challenge_is_rendered_in_browser(article_html: str) -> None:
    routes = RecordingRoutes({ARTICLE_URL: html_response(CHALLENGE, 403, server="cloudflare")})
    browser = StubBrowser(article_html)

    article = asyncio.run(_extractor(routes, browser).extract(ARTICLE_URL))

    assert not article.extraction_failed, article.extraction_trace.failure_reason
    assert browser.calls == [ARTICLE_URL]
    trace = article.extraction_trace
    assert trace.fetch_method == "js"
    assert trace.fallback_used
    assert trace.bot_protection == "cloudflare 403"


def test_unresolved_bot_challenge() -> None:
    routes = RecordingRoutes({ARTICLE_URL: html_response(CHALLENGE, 403, server="cloudflare")})

    article = asyncio.run(_extractor(routes, StubBrowser(None)).extract(ARTICLE_URL))

    assert article.extraction_failed
    assert article.extraction_trace.failure_reason.startswith("BOT_PROTECTION_UNRESOLVED")


def test_missing_page_is_a_fetch_failure() -> None:
    article = asyncio.run(_extractor(RecordingRoutes()).extract(ARTICLE_URL))

    assert article.extraction_failed
    assert article.extraction_trace.failure_reason == "FETCH_FAILED: HTTP 404"
    assert not article.extraction_trace.url_fetched


def test_short_page_is_insufficient() -> None:
    html = build_article_html(paragraphs=["A single short paragraph about the quay repairs this week."])
    routes = RecordingRoutes({ARTICLE_URL: html_response(html)})

    article = asyncio.run(_extractor(routes).extract(ARTICLE_URL))

    assert article.extraction_failed
    assert article.extraction_trace.failure_reason.startswith("INSUFFICIENT_CONTENT")
    assert article.extraction_trace.url_fetched


def test_contact_details_fail_quality_gate() -> None:
    paragraphs = [
        "Visitors can reach the harbour master by phone: 0161 496 0000 during the festival weekend "
        "for berthing questions and mooring requests.",
        "Questions about stalls go by email: stalls@example.com and the festival office answers "
        "within two working days of receiving them.",
        "Lost property is held at the harbour office and can be reported by phone: 0161 496 0001 "
        "until the end of the month after the festival.",
        "Press enquiries go by email: press@example.com and photographers must register before "
        "the tall ships arrive on Saturday morning.",
    ]
    html = build_article_html(paragraphs=paragraphs)
    routes = RecordingRoutes({ARTICLE_URL: html_response(html)})

    article = asyncio.run(_extractor(routes).extract(ARTICLE_URL))

    assert article.extraction_failed
    trace = article.extraction_trace
    assert trace.failure_reason.startswith("FINAL_VALIDATION_FAILED")
    assert trace.is_contact_page
    assert trace.quality_score is not None


def test_extractor_errors_become_failed_records(article_html: str) -> None:
    class BrokenFetcher:
        async def fetch(self, url: str):
            raise RuntimeError("connection pool exhausted")

    extractor = ArticleExtractor(fetcher=BrokenFetcher(), browser=StubBrowser(), cache=ArticleCache())

    article = asyncio.run(extractor.extract(ARTICLE_URL))

    assert article.extraction_failed
    assert article.extraction_trace.failure_reason == "Error during extraction: connection pool exhausted"


def test_cloudflare_fronted_article_is_read_without_browser(article_html: str) -> None:
    script = '<script src="/cdn-cgi/challenge-platform/scripts/jsd/main.js"></script>'
    html = article_html.replace("</body>", f"{script}</body>")
    routes = RecordingRoutes({ARTICLE_URL: html_response(html, server="cloudflare")})
    browser = StubBrowser(None)

    article = asyncio.run(_extractor(routes, browser).extract(ARTICLE_URL))

    assert not article.extraction_failed, article.extraction_trace.failure_reason
    assert browser.calls == []
    assert article.extraction_trace.fetch_method == "html"
    assert article.extraction_trace.bot_protection is None


def test_challenge_page_served_with_200_goes_to_browser(article_html: str) -> None:
    routes = RecordingRoutes({ARTICLE_URL: html_response(CHALLENGE)})
    browser = StubBrowser(article_html)

    article = asyncio.run(_extractor(routes, browser).extract(ARTICLE_URL))

    assert not article.extraction_failed, article.extraction_trace.failure_reason
    assert browser.calls == [ARTICLE_URL]
    assert article.extraction_trace.bot_protection == "Just a moment..."


def test_thin_listing_markup_is_reported_as_listing() -> None:
    html = (
        "<html><body><h1>Harbour news</h1><p>Showing 12 articles</p>"
        '<ul class="pagination"><li><a href="/page/2">2</a></li></ul></body></html>'
    )
    url = "https://example.com/news/harbour-roundup-for-the-whole-season"
    routes = RecordingRoutes({url: html_response(html)})

    article = asyncio.run(_extractor(routes).extract(url))

    assert article.extraction_failed
    assert article.extraction_trace.failure_reason == "LISTING_PAGE_DETECTED"
    assert article.extraction_trace.is_listing_page
