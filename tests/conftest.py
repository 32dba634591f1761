from __future__ import annotations

from typing import Callable

import httpx
import pytest

from newsagent.config import AgentConfig, FetchConfig, PolitenessConfig
from newsagent.fetchers.http import HttpFetcher

ARTICLE_TITLE = "Harbour Festival Draws Record Crowds"

ARTICLE_PARAGRAPHS = [
    "The annual harbour festival drew record crowds this weekend as families gathered along "
    "the waterfront to watch the tall ships arrive under clear skies.",
    "Organisers said the festival had grown steadily since it began, with local bakers, "
    "musicians and boat builders sharing the quay with visitors from across the region.",
    "Harbour officials praised the volunteers who kept the walkways clear and guided crowds "
    "safely between the historic moorings and the new pedestrian bridge.",
    "The festival closes on Sunday evening with a lantern parade along the harbour wall, "
    "followed by a concert of traditional sea shanties performed by the town choir.",
]


def build_article_html(
    title: str = ARTICLE_TITLE,
    paragraphs: list[str] | None = None,
    image: str = "https://example.com/images/festival.jpg",
) -> str:
    paragraphs = ARTICLE_PARAGRAPHS if paragraphs is None else paragraphs
    body = "\n".join(f"<p>{text}</p>" for text in paragraphs)
    return f"""<!DOCTYPE html>
<html lang="en-GB">
  <head>
    <title>{title}</title>
    <meta property="og:title" content="{title}">
    <meta name="description" content="Families gathered along the waterfront to watch the tall ships arrive at the annual harbour festival.">
    <meta property="og:image" content="{image}">
    <meta name="author" content="Jane Doe">
    <meta property="article:published_time" content="2026-01-26T10:00:00Z">
  </head>
  <body>
    <nav><a href="/">Home</a></nav>
    <article>
      <h1 class="headline">{title}</h1>
      <time datetime="2026-01-26T10:00:00Z">Monday</time>
      {body}
    </article>
  </body>
</html>
"""


HOMEPAGE_HTML = """<!DOCTYPE html>
<html lang="en">
  <head><title>Example Harbour News</title></head>
  <body>
    <a href="/news/harbour-festival-draws-record-crowds">Harbour festival</a>
    <a href="https://example.com/news/lantern-parade-closes-festival?utm_source=home">Lantern parade</a>
    <a href="/news/harbour-festival-draws-record-crowds#top">Duplicate</a>
    <a href="/about">About</a>
    <a href="/category/local">Local</a>
    <a href="https://facebook.com/examplenews">Facebook</a>
    <a href="https://other.org/news/elsewhere">Elsewhere</a>
  </body>
</html>
"""


class StubBrowser:
    """Stands in for ``HardenedBrowser`` in agent and extraction tests."""

    def __init__(self, html: str | None = None) -> None:
        self.html = html
        self.calls: list[str] = []
        self.cleaned = 0

    async def fetch_with_retry(self, url: str, max_retries: int | None = None) -> str | None:
        self.calls.append(url)
        return self.html

    async def cleanup(self) -> None:
        self.cleaned += 1


Route = Callable[[httpx.Request], httpx.Response]


class RecordingRoutes:
    def __init__(self, routes: dict[str, httpx.Response | Route] | None = None) -> None:
        self.routes = dict(routes or {})
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route


def html_response(html: str, status_code: int = 200, **headers: str) -> httpx.Response:
    return httpx.Response(status_code, text=html, headers={"content-type": "text/html", **headers})


def make_fetcher(routes: RecordingRoutes) -> HttpFetcher:
    return HttpFetcher(max_attempts=1, backoff=0, transport=httpx.MockTransport(routes))


def make_config(**kwargs) -> AgentConfig:
    kwargs.setdefault("url", "https://example.com/")
    kwargs.setdefault("politeness", PolitenessConfig(batch_delay_ms=(0, 0), request_jitter_ms=(0, 0)))
    kwargs.setdefault("fetch", FetchConfig(max_attempts=1, backoff_s=0))
    return AgentConfig(**kwargs)


@pytest.fixture
def article_html() -> str:
    return build_article_html()
