"""Single-purpose field extractors.

Each function looks for one field using the common publishing conventions
(Open Graph, Twitter cards, JSON-LD ``NewsArticle`` objects, plain meta tags
and generic CSS class names) and returns an empty value when nothing is
found. They are used to backfill whatever the content extractors missed.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterator

from bs4 import BeautifulSoup, Tag

from newsagent.boilerplate import is_ad_or_tracking_image, is_garbage_text
from newsagent.discovery.url_utils import absolutise
from newsagent.utils import collapse_whitespace

CONTENT_SELECTORS = (
    "article",
    '[class*="article"]',
    '[class*="post"]',
    '[class*="news-content"]',
    '[class*="entry-content"]',
    ".single-post",
    ".post-content",
    ".article-body",
    "main",
)

AUTHOR_SELECTORS = ('[rel="author"]', ".author", ".byline", ".article-author")
DATE_SELECTORS = ("time", ".publish-date", ".published", ".date")
CATEGORY_SELECTORS = (".category", ".section", ".breadcrumb", ".tags")
ARTICLE_LD_TYPES = {"newsarticle", "article", "blogposting", "reportagenewsarticle", "webpage"}
MAX_CATEGORY_CHARS = 100


def parse_html(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "iframe", "template"]):
        if tag.name == "script" and (tag.get("type") or "").lower() == "application/ld+json":
            continue
        tag.decompose()
    return soup


def meta_content(soup: BeautifulSoup, *names: str) -> str:
    for name in names:
        for attr in ("property", "name", "itemprop"):
            tag = soup.find("meta", attrs={attr: name})
            if isinstance(tag, Tag):
                value = collapse_whitespace(str(tag.get("content") or ""))
                if value:
                    return value
    return ""


def text_of(tag: Tag | None) -> str:
    if tag is None:
        return ""
    return collapse_whitespace(tag.get_text(" ", strip=True))


def iter_json_ld(soup: BeautifulSoup) -> Iterator[dict[str, Any]]:
    """Yield article-like JSON-LD objects, flattening ``@graph`` and lists."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        stack: list[Any] = [data]
        while stack:
            item = stack.pop(0)
            if isinstance(item, list):
                stack.extend(item)
                continue
            if not isinstance(item, dict):
                continue
            if "@graph" in item:
                stack.extend(item["@graph"] if isinstance(item["@graph"], list) else [item["@graph"]])
            types = item.get("@type")
            type_names = types if isinstance(types, list) else [types]
            if any(str(name).lower() in ARTICLE_LD_TYPES for name in type_names if name):
                yield item


def _json_ld_value(soup: BeautifulSoup, key: str) -> Any:
    for item in iter_json_ld(soup):
        value = item.get(key)
        if value:
            return value
    return None


def _ld_text(value: Any) -> str:
    """Flatten a JSON-LD value (string, object with ``name``/``url`` or list) to text."""
    if isinstance(value, str):
        return collapse_whitespace(value)
    if isinstance(value, dict):
        return _ld_text(value.get("name") or value.get("url") or value.get("@id"))
    if isinstance(value, list):
        parts = [_ld_text(item) for item in value]
        return ", ".join(part for part in parts if part)
    return ""


def selector_paragraphs(soup: BeautifulSoup, min_chars: int = 30) -> list[str]:
    root: Tag | None = None
    for selector in CONTENT_SELECTORS:
        root = soup.select_one(selector)
        if root is not None:
            break
    scope = root if root is not None else soup
    paragraphs: list[str] = []
    for p in scope.find_all("p"):
        text = text_of(p)
        if len(text) > min_chars and not is_garbage_text(text, min_length=min_chars):
            paragraphs.append(text)
    return paragraphs


def extract_title(soup: BeautifulSoup) -> str:
    title = meta_content(soup, "og:title", "twitter:title")
    if title:
        return title
    headline = _ld_text(_json_ld_value(soup, "headline"))
    if headline:
        return headline
    h1 = soup.find("h1")
    if isinstance(h1, Tag) and text_of(h1):
        return text_of(h1)
    if soup.title is not None:
        return text_of(soup.title)
    return ""


def extract_description(soup: BeautifulSoup) -> str:
    description = meta_content(soup, "description", "og:description", "twitter:description")
    if description:
        return description
    description = _ld_text(_json_ld_value(soup, "description"))
    if description:
        return description
    for p in soup.find_all("p"):
        text = text_of(p)
        if len(text) > 50 and "advertisement" not in text.lower():
            return text
    return ""


def extract_image(soup: BeautifulSoup, base_url: str) -> str:
    image = meta_content(soup, "og:image", "og:image:url", "twitter:image", "twitter:image:src")
    if not image:
        image = _ld_text(_json_ld_value(soup, "image"))
        image = image.split(", ")[0] if image else ""
    if not image:
        for scope in (soup.find("article"), soup.body):
            if not isinstance(scope, Tag):
                continue
            for img in scope.find_all("img"):
                src = img.get("src") or img.get("data-src") or ""
                if src and not is_ad_or_tracking_image(src):
                    image = str(src)
                    break
            if image:
                break
    return absolutise(base_url, image)


def extract_author(soup: BeautifulSoup) -> str:
    author = meta_content(soup, "author", "article:author", "parsely-author")
    if author and not author.startswith("http"):
        return author
    author = _ld_text(_json_ld_value(soup, "author"))
    if author:
        return author
    for selector in AUTHOR_SELECTORS:
        text = text_of(soup.select_one(selector))
        if text:
            return text
    return ""


def extract_published(soup: BeautifulSoup) -> str | None:
    raw = meta_content(soup, "article:published_time", "publishdate", "pubdate", "date", "datePublished")
    if not raw:
        raw = _ld_text(_json_ld_value(soup, "datePublished"))
    if raw:
        parsed = to_iso8601(raw)
        if parsed:
            return parsed
    for selector in DATE_SELECTORS:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        parsed = to_iso8601(str(tag.get("datetime") or "") or text_of(tag))
        if parsed:
            return parsed
    return None


def extract_category(soup: BeautifulSoup) -> str:
    category = meta_content(soup, "article:section", "category")
    if not category:
        category = _ld_text(_json_ld_value(soup, "articleSection"))
    if not category:
        for selector in CATEGORY_SELECTORS:
            category = text_of(soup.select_one(selector))
            if category:
                break
    return category[:MAX_CATEGORY_CHARS].strip()


def extract_language(soup: BeautifulSoup, default: str = "en") -> str:
    html_tag = soup.find("html")
    if isinstance(html_tag, Tag):
        lang = str(html_tag.get("lang") or "").strip()
        if lang:
            return lang.split("-")[0].lower()
    locale = meta_content(soup, "og:locale")
    if locale:
        return locale.replace("_", "-").split("-")[0].lower()
    return default


def to_iso8601(value: str | None) -> str | None:
    """Normalise a date string to ISO-8601 (UTC when no offset); ``None`` if unparsable."""
    if not value:
        return None
    value = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            parsed = None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.isoformat()
