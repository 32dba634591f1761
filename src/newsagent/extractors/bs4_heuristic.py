from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from newsagent.boilerplate import is_valid_content_paragraph
from newsagent.extractors.fields import extract_title, parse_html, selector_paragraphs, text_of
from newsagent.models import ExtractionResult

ROOT_SELECTORS = (
    "article",
    '[class*="article-body"]',
    '[class*="article-content"]',
    '[class*="story-body"]',
    '[class*="entry-content"]',
    '[class*="post-content"]',
    '[class*="news-content"]',
    '[class*="single-post"]',
    "#article-body",
    "#story",
    "#content",
    "#main-content",
    "main",
)

DENSITY_CANDIDATE_TAGS = ("div", "section", "article", "main")
STRIPPED_INSIDE_ROOT = ("nav", "footer", "aside", "form", "button")
MIN_ROOT_TEXT = 100
MAX_LINK_DENSITY = 0.5
MIN_ROOT_PARAGRAPHS = 2


@dataclass
class Bs4SelectorExtractor:
    """Last link of the generic chain: first matching content selector, its ``<p>`` text."""

    name: str = "bs4_selector"

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        soup = parse_html(html)
        paragraphs = selector_paragraphs(soup, min_chars=30)
        text = "\n\n".join(paragraphs)
        return ExtractionResult(
            method=self.name,
            title=extract_title(soup) or None,
            text=text,
            paragraphs=paragraphs,
            success=bool(text),
            error=None if text else "No content extracted",
        )


@dataclass
class Bs4HeuristicExtractor:
    """Root-scoring extraction.

    Picks the article root from known selectors (needs an ``h1`` or at least
    two paragraphs, more than 100 characters and a link density under 0.5),
    else the densest qualifying block, else ``body``; then keeps only the
    paragraphs that pass the boilerplate filters.
    """

    name: str = "bs4_heuristic"

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        soup = parse_html(html)
        root, selector = find_article_root(soup)
        paragraphs: list[str] = []
        if root is not None:
            for tag in root.find_all(STRIPPED_INSIDE_ROOT):
                tag.decompose()
            for p in root.find_all("p"):
                text = text_of(p)
                if is_valid_content_paragraph(text, p.get("class")):
                    paragraphs.append(text)

        text = "\n\n".join(paragraphs)
        h1 = root.find("h1") if root is not None else None
        title = text_of(h1) if isinstance(h1, Tag) else ""
        return ExtractionResult(
            method=self.name,
            title=title or extract_title(soup) or None,
            text=text,
            paragraphs=paragraphs,
            root_selector=selector,
            success=bool(text),
            error=None if text else "No content extracted",
        )


def find_article_root(soup: BeautifulSoup) -> tuple[Tag | None, str]:
    for selector in ROOT_SELECTORS:
        for candidate in soup.select(selector):
            if _qualifies(candidate):
                return candidate, selector

    best: Tag | None = None
    best_length = 0
    for candidate in soup.find_all(DENSITY_CANDIDATE_TAGS):
        if not _qualifies(candidate):
            continue
        length = sum(len(text_of(p)) for p in candidate.find_all("p", recursive=False))
        if length > best_length:
            best, best_length = candidate, length
    if best is not None:
        return best, describe(best)

    body = soup.body
    if body is not None:
        return body, "body"
    return None, ""


def link_density(tag: Tag) -> float:
    text_length = len(text_of(tag))
    if text_length == 0:
        return 1.0
    link_length = sum(len(text_of(a)) for a in tag.find_all("a"))
    return link_length / text_length


def describe(tag: Tag) -> str:
    """Short CSS-like label for a node, recorded on the extraction trace."""
    element_id = tag.get("id")
    if element_id:
        return f"{tag.name}#{element_id}"
    classes = tag.get("class") or []
    if classes:
        return f"{tag.name}." + ".".join(classes)
    return tag.name


def _qualifies(tag: Tag) -> bool:
    has_heading = tag.find("h1") is not None
    paragraph_count = len(tag.find_all("p"))
    if not has_heading and paragraph_count < MIN_ROOT_PARAGRAPHS:
        return False
    if len(text_of(tag)) <= MIN_ROOT_TEXT:
        return False
    return link_density(tag) < MAX_LINK_DENSITY
