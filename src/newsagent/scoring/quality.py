"""Content quality gate.

Scores extracted ``(content, title)`` pairs against pattern families for
contact details, advertising, footers, listing pages and boilerplate, and
against positive article-structure cues. The final ``has_real_article_content``
flag is conjunctive: any disqualifying category fails the article no matter
what the overall score is.
"""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlsplit

from newsagent.config import QualityConfig
from newsagent.extractors.fields import extract_title, parse_html, selector_paragraphs
from newsagent.models import QualityResult

_I = re.IGNORECASE

CONTACT_PATTERNS = (
    re.compile(r"\b(phone|tel|mobile|cell)\s*[:.]?\s*[\d\-\+\(\)\s]{7,}", _I),
    re.compile(r"\b(email|mail|e-mail)\s*[:.]?\s*[\w.\-]+@[\w.\-]+\.\w{2,}", _I),
    re.compile(r"\b(address|location)\s*[:.]?\s*[\w\s,\-.\(\)]{10,}", _I),
    re.compile(r"\b(contact us|get in touch|reach us)\b", _I),
    re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    re.compile(r"\+?\d{1,3}[-.\s]?\(?\d{2,4}\)?[-.\s]?\d{3,4}[-.\s]?\d{3,4}"),
)

COPYRIGHT_PATTERNS = (
    re.compile(r"(\bcopyright\b|©|\ball rights reserved\b|\bpowered by\b|\bdesigned by\b)", _I),
    re.compile(r"\b\d{4}\s*[-–]\s*\d{4}\b"),
    re.compile(r"\b(privacy policy|terms and conditions|terms of use|disclaimer)\b", _I),
    re.compile(r"\b(about us|who we are|our team|meet the staff)\b", _I),
)

ADVERTISEMENT_PATTERNS = (
    re.compile(r"\b(advertisement|advert|sponsored|paid content|pr article)\b", _I),
    re.compile(r"\b(click here|sign up|subscribe now|limited time offer)\b", _I),
    re.compile(r"\b(buy now|order now|get started|free trial)\b", _I),
    re.compile(r"\b(this is an ad|advertorial|native ad)\b", _I),
)

FOOTER_PATTERNS = (
    re.compile(r"\b(quick links|useful links|important links|site map)\b", _I),
    re.compile(r"\b(follow us on|like us on|share this)\b", _I),
    re.compile(r"\b(back to top|scroll to top|return to top)\b", _I),
    re.compile(r"\b(categories:|tags:|related news|you may also like)", _I),
)

LISTING_PAGE_PATTERNS = (
    re.compile(r"\b(read more|continue reading|view all|see more)\b", _I),
    re.compile(r"\b(page \d+ of \d+|showing \d+-\d+ of \d+)\b", _I),
    re.compile(r"\b(news list|article list|latest posts|recent stories)\b", _I),
    re.compile(r'<ul[^>]*class="[^"]*pagination', _I),
    re.compile(r"\b(previous|next|older|newer)\b", _I),
    re.compile(r"\d+\s*(results|articles|posts|stories)", _I),
)

ARTICLE_INDICATORS = (
    re.compile(r'<h1[^>]*class="[^"]*title[^"]*"', _I),
    re.compile(r'<h1[^>]*id="[^"]*title[^"]*"', _I),
    re.compile(r"<article", _I),
    re.compile(r"<time[^>]*datetime", _I),
    re.compile(r'<span[^>]*class="[^"]*author[^"]*"', _I),
    re.compile(r'<div[^>]*class="[^"]*article[-_]body[^"]*"', _I),
    re.compile(r'<div[^>]*class="[^"]*post[-_]content[^"]*"', _I),
    re.compile(r'<p[^>]*class="[^"]*lead[^"]*"', _I),
)

_LISTING_URL_PATTERNS = (
    re.compile(r"/latest(-news)?/?$"),
    re.compile(r"/news/?$"),
    re.compile(r"/updates/?$"),
    re.compile(r"/all(-news)?/?$"),
    re.compile(r"/page/\d+"),
    re.compile(r"/category/"),
    re.compile(r"/tag/"),
    re.compile(r"/archive/"),
)

_LISTING_HTML_PATTERNS = (
    re.compile(r'class="[^"]*pagination', _I),
    re.compile(r'class="[^"]*paging', _I),
    re.compile(r"\d+\s*(results|articles|posts)", _I),
    re.compile(r"(previous|next|older|newer)[^<]*(article|post|news)", _I),
    re.compile(r'<ul[^>]*class="[^"]*article[-_]?list', _I),
)

TITLE_COVERAGE_MIN = 0.3
FOOTER_MAX_LENGTH = 500
MIN_PARAGRAPH_CHARS = 20


def count_matches(text: str, patterns: Iterable[re.Pattern[str]]) -> int:
    return sum(1 for pattern in patterns for _ in pattern.finditer(text))


def split_paragraphs(content: str) -> list[str]:
    parts = (part.strip() for part in re.split(r"\n\s*\n+", content))
    return [part for part in parts if len(part) > MIN_PARAGRAPH_CHARS]


def title_coverage(title: str, content: str) -> float:
    words = [word for word in title.lower().split() if len(word) > 3]
    if not words:
        return 0.0
    lowered = content.lower()
    return sum(1 for word in words if word in lowered) / len(words)


class ContentValidator:
    def __init__(self, config: QualityConfig | None = None) -> None:
        self.config = config or QualityConfig()

    def validate(self, content: str, title: str, url: str = "", html: str | None = None) -> QualityResult:
        """Score ``content`` and decide whether it is a real article.

        ``html`` is the page the content came from; when given, the positive
        structure cues (``<article>``, ``<time datetime>``, byline markup) are
        looked up there rather than in the plain text.
        """
        if not content:
            return QualityResult(is_valid=False, score=0, reasons=["Empty content"])

        cfg = self.config
        reasons: list[str] = []
        score = 100

        contact_matches = count_matches(content, CONTACT_PATTERNS)
        copyright_matches = count_matches(content, COPYRIGHT_PATTERNS)
        ad_matches = count_matches(content, ADVERTISEMENT_PATTERNS)
        footer_matches = count_matches(content, FOOTER_PATTERNS)
        listing_matches = count_matches(content, LISTING_PAGE_PATTERNS)

        is_contact_page = contact_matches > cfg.max_contact_keywords
        is_advertisement = ad_matches > cfg.max_advertisement_keywords
        is_footer_content = footer_matches > 2 and len(content) < FOOTER_MAX_LENGTH
        is_listing_page = listing_matches > 2

        if is_contact_page:
            score -= 50
            reasons.append(f"Contact information detected ({contact_matches} matches)")
        if is_advertisement:
            score -= 50
            reasons.append(f"Advertisement content detected ({ad_matches} matches)")
        if is_footer_content:
            score -= 40
            reasons.append("Likely footer content detected")
        if is_listing_page:
            score -= 60
            reasons.append("Listing page content detected")
        if copyright_matches > cfg.max_copyright_keywords:
            score -= 30
            reasons.append(f"Copyright/boilerplate content detected ({copyright_matches} matches)")

        paragraphs = split_paragraphs(content)
        if len(paragraphs) < cfg.min_paragraphs:
            score -= 20 * (cfg.min_paragraphs - len(paragraphs))
            reasons.append(f"Too few paragraphs ({len(paragraphs)} < {cfg.min_paragraphs})")

        if len(content) < cfg.min_content_length:
            score -= 30
            reasons.append(f"Content too short ({len(content)} < {cfg.min_content_length})")

        if len(title) > 20 and title_coverage(title, content) < TITLE_COVERAGE_MIN:
            score -= 20
            reasons.append("Title not well reflected in content")

        if count_matches(html if html else content, ARTICLE_INDICATORS) == 0:
            score -= 25
            reasons.append("No article structure indicators found")

        average = sum(len(p) for p in paragraphs) / (len(paragraphs) or 1)
        if average < 50:
            score -= 15
            reasons.append("Paragraphs are unusually short")
        if average > 2000:
            score -= 10
            reasons.append("Paragraphs are unusually long (possible concatenated content)")

        has_real_article_content = (
            not is_contact_page
            and not is_advertisement
            and not is_footer_content
            and not is_listing_page
            and len(content) >= cfg.min_content_length
            and len(paragraphs) >= cfg.min_paragraphs
            and score >= cfg.quality_score_threshold
        )

        return QualityResult(
            is_valid=has_real_article_content,
            score=max(0, score),
            reasons=reasons,
            is_listing_page=is_listing_page,
            is_contact_page=is_contact_page,
            is_advertisement=is_advertisement,
            is_footer_content=is_footer_content,
            has_real_article_content=has_real_article_content,
        )

    def validate_html(self, html: str, url: str = "") -> QualityResult:
        soup = parse_html(html)
        title = extract_title(soup)
        content = "\n\n".join(selector_paragraphs(soup, min_chars=30))
        return self.validate(content, title, url, html=html)

    def is_listing_page(self, html: str, url: str) -> bool:
        path = urlsplit(url).path.lower()
        if any(pattern.search(path) for pattern in _LISTING_URL_PATTERNS):
            return True
        return count_matches(html, _LISTING_HTML_PATTERNS) > 1


def calculate_content_quality_score(content: str, title: str, paragraphs: list[str]) -> int:
    """Lightweight 0-100 score used for quick comparisons between candidates."""
    if len(content) < 100:
        return 0
    score = 100
    if len(content) < 300:
        score -= 20
    if len(content) < 500:
        score -= 10

    if len(paragraphs) < 2:
        score -= 30
    elif len(paragraphs) < 3:
        score -= 15
    elif len(paragraphs) < 5:
        score -= 5

    if paragraphs:
        average = sum(len(p) for p in paragraphs) / len(paragraphs)
        if average < 50:
            score -= 20
        if average > 1500:
            score -= 10

    words = [word for word in title.lower().split() if len(word) > 3]
    if words and title_coverage(title, content) < 0.2:
        score -= 15

    lowered = content.lower()
    if ("copyright" in lowered or "all rights reserved" in lowered or "©" in content) and len(content) < 1000:
        score -= 25
    if re.search(r"phone|tel|email|contact", lowered):
        score -= 20
    if re.search(r"advertisement|sponsored|advert", lowered):
        score -= 30

    return max(0, min(100, score))
