from __future__ import annotations

from dataclasses import dataclass

from conftest import ARTICLE_TITLE, build_article_html

from newsagent.extractors.bs4_heuristic import (
    Bs4HeuristicExtractor,
    Bs4SelectorExtractor,
    find_article_root,
    link_density,
)
from newsagent.extractors.engine import ExtractionEngine
from newsagent.extractors.fields import parse_html
from newsagent.extractors.readability import ReadabilityExtractor
from newsagent.extractors.trafilatura import TrafilaturaExtractor
from newsagent.models import ExtractionResult
from newsagent.scoring.heuristics import HeuristicThresholds

NAV_HEAVY_HTML = """
<html><body>
  <main>
    <p><a href="/a">First linked headline on the harbour front page</a></p>
    <p><a href="/b">Second linked headline on the harbour front page</a></p>
    <p><a href="/c">Third linked headline on the harbour front page</a></p>
  </main>
  <div class="story-wrapper">
    <p>The harbour board confirmed that the old lighthouse will reopen to visitors in the spring after repairs.</p>
    <p>Volunteers restored the lamp room and repainted the spiral staircase over the winter months.</p>
    <p>Guided tours will run on weekends, with school groups welcome on weekday mornings.</p>
  </div>
</body></html>
"""

BOILERPLATE_HTML = """
<html><body>
  <article>
    <h1>Lighthouse Reopens</h1>
    <p>The harbour board confirmed that the old lighthouse will reopen to visitors in the spring.</p>
    <p class="share-links">Share on every network you like to use, and tell your friends about it.</p>
    <p>Subscribe to the harbour newsletter for weekly updates from the quay and the marina.</p>
    <p>Related</p>
    <nav><p>Navigation paragraph that sits inside the article root and must be dropped.</p></nav>
    <p>Guided tours will run on weekends, with school groups welcome on weekday mornings.</p>
  </article>
</body></html>
"""


def test_heuristic_extractor_uses_article_root() -> None:
    result = Bs4HeuristicExtractor().extract(build_article_html(), "https://example.com/news/a")

    assert result.success
    assert result.root_selector == "article"
    assert len(result.paragraphs) == 4
    assert result.title == ARTICLE_TITLE
    assert result.text == "\n\n".join(result.paragraphs)


def test_heuristic_extractor_skips_link_heavy_roots() -> None:
    root, selector = find_article_root(parse_html(NAV_HEAVY_HTML))

    assert root is not None
    assert selector == "div.story-wrapper"


def test_heuristic_extractor_falls_back_to_body() -> None:
    html = "<html><body><p>Only one short paragraph here.</p></body></html>"
    root, selector = find_article_root(parse_html(html))
    assert selector == "body"
    assert root is not None


def test_heuristic_extractor_filters_boilerplate_paragraphs() -> None:
    result = Bs4HeuristicExtractor().extract(BOILERPLATE_HTML)

    assert result.paragraphs == [
        "The harbour board confirmed that the old lighthouse will reopen to visitors in the spring.",
        "Guided tours will run on weekends, with school groups welcome on weekday mornings.",
    ]


def test_link_density() -> None:
    soup = parse_html('<div>plain text <a href="/x">link</a></div>')
    density = link_density(soup.div)
    assert 0 < density < 0.5
    assert link_density(parse_html("<div></div>").div) == 1.0


def test_selector_extractor() -> None:
    result = Bs4SelectorExtractor().extract(build_article_html())
    assert result.success
    assert len(result.paragraphs) == 4
    assert result.title == ARTICLE_TITLE


def test_trafilatura_extractor() -> None:
    result = TrafilaturaExtractor().extract(build_article_html(), "https://example.com/news/a")

    assert result.success
    assert "tall ships" in result.text
    assert result.title == ARTICLE_TITLE
    assert result.image == "https://example.com/images/festival.jpg"


def test_readability_extractor() -> None:
    result = ReadabilityExtractor().extract(build_article_html(), "https://example.com/news/a")

    assert result.success
    assert "lantern parade" in result.text
    assert result.paragraphs


@dataclass
class StubExtractor:
    name: str
    text: str = ""
    fail: bool = False
    calls: int = 0

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        self.calls += 1
        if self.fail:
            raise RuntimeError("parser exploded")
        return ExtractionResult(method=self.name, text=self.text, success=bool(self.text))


def test_engine_returns_first_accepted() -> None:
    first = StubExtractor("first", text="too short")
    second = StubExtractor("second", text="word " * 60)
    third = StubExtractor("third", text="word " * 80)
    engine = ExtractionEngine([first, second, third])

    result = engine.run("<html></html>")

    assert result is not None
    assert result.method == "second"
    assert third.calls == 0


def test_engine_survives_broken_extractor_and_returns_best() -> None:
    messages: list[str] = []
    engine = ExtractionEngine(
        [
            StubExtractor("broken", fail=True),
            StubExtractor("short", text="a few words"),
            StubExtractor("longer", text="a few more words here"),
        ],
        thresholds=HeuristicThresholds(min_chars=500, min_words=100),
        log=messages.append,
    )

    result = engine.run("<html></html>", "https://example.com/news/a")

    assert result is not None
    assert result.method == "longer"
    assert any("broken failed" in message for message in messages)


def test_engine_returns_none_when_nothing_extracted() -> None:
    engine = ExtractionEngine([StubExtractor("empty")])
    assert engine.run("<html></html>") is None


def test_engine_strips_nul_bytes() -> None:
    engine = ExtractionEngine([StubExtractor("nul", text="word\x00 " * 60)])
    result = engine.run("<html></html>")
    assert result is not None
    assert "\x00" not in result.text
