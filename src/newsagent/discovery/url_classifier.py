"""URL classification for a single publisher site.

Every URL found during discovery is sorted into one of six types. The split
between *crawl* (follow links found on the page) and *extract* (treat the
page as a final article) keeps the agent from extracting prose out of an
index page and from wandering into utility pages.

Examples:
    >>> classifier = URLClassifier("https://www.example.com")
    >>> classifier.classify("https://example.com/").type.value
    'homepage'
    >>> classifier.classify("https://example.com/news/123456").should_extract
    True
    >>> classifier.classify("https://other.org/news/1").type.value
    'external'
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from newsagent.discovery.url_utils import host_matches, strip_www
from newsagent.models import URLClassification, URLValidation, UrlType

SOCIAL_DOMAINS = (
    "facebook.com",
    "fb.com",
    "facebook.me",
    "twitter.com",
    "x.com",
    "youtube.com",
    "youtu.be",
    "instagram.com",
    "linkedin.com",
    "pinterest.com",
    "tiktok.com",
    "whatsapp.com",
    "t.me",
    "telegram.me",
)

# Matched against whole path segments, so "/author" does not catch "/authority-report".
UTILITY_SEGMENTS = frozenset(
    {
        "unicode-converter",
        "converter",
        "unicode",
        "search",
        "archives",
        "all-tags",
        "all-writers",
        "all_tags",
        "privacy-policy",
        "terms-conditions",
        "terms-of-service",
        "about-us",
        "contact-us",
        "contact",
        "about",
        "namaz",
        "prayer-time",
        "sitemap",
        "feed",
        "login",
        "register",
        "signup",
        "signin",
        "admin",
        "wp-admin",
        "wp-login.php",
        "cart",
        "checkout",
        "account",
        "profile",
        "subscribe",
        "newsletter",
        "unsubscribe",
        "video",
        "videos",
        "gallery",
        "galleries",
        "author",
        "widget",
        "amp",
    }
)

ARTICLE_SEGMENTS = (
    "/news/",
    "/article/",
    "/story/",
    "/post/",
    "/press-release/",
    "/breaking-news/",
    "/latest-news/",
    "/world-news/",
    "/bangla-news/",
    "/sports-news/",
    "/entertainment/",
    "/technology/",
    "/business/",
    "/politics/",
    "/economy/",
    "/culture/",
)

LISTING_SUFFIXES = ("/latest", "/latest-news", "/news", "/homepage")

_PAGINATION_RE = re.compile(r"/page/\d+|/paged\d+|/page\d+", re.IGNORECASE)
_NUMERIC_SLUG_RE = re.compile(r"/[a-z]+-\d{6,}")
_FILE_EXTENSION_RE = re.compile(r"\.[a-z0-9]{1,5}$", re.IGNORECASE)

_ARTICLE_ID_PATTERNS = (
    re.compile(r"/(\d{6,})/?$"),
    re.compile(r"/article[_-](\d+)"),
    re.compile(r"/(\w+)-\d{8,}"),
    re.compile(r"/news/(\w+)"),
)

_EXTERNAL = URLClassification(UrlType.EXTERNAL, should_crawl=False, should_extract=False, priority=10)


class URLClassifier:
    def __init__(self, base_url: str) -> None:
        hostname = urlsplit(base_url).hostname or ""
        if not hostname:
            raise ValueError(f"Base URL has no hostname: {base_url!r}")
        self.base_hostname = strip_www(hostname)

    def classify(self, url: str) -> URLClassification:
        parsed = self._parse(url)
        if parsed is None:
            return _EXTERNAL
        hostname, path = parsed
        if not host_matches(hostname, self.base_hostname) or _is_social(hostname):
            return _EXTERNAL

        path = path.rstrip("/")
        lowered = path.lower()

        if lowered in {"", "/home"} or lowered.strip("/") == self.base_hostname:
            return URLClassification(UrlType.HOMEPAGE, should_crawl=True, should_extract=False, priority=1)

        if lowered.endswith(LISTING_SUFFIXES) or _PAGINATION_RE.search(lowered):
            return URLClassification(UrlType.LISTING, should_crawl=True, should_extract=False, priority=2)

        if "/category/" in lowered and "/news/" not in lowered and "/article/" not in lowered:
            return URLClassification(UrlType.CATEGORY, should_crawl=True, should_extract=False, priority=4)

        if _is_utility_path(lowered):
            return URLClassification(UrlType.UTILITY, should_crawl=False, should_extract=False, priority=9)

        if any(segment in path for segment in ARTICLE_SEGMENTS):
            return URLClassification(UrlType.ARTICLE, should_crawl=False, should_extract=True, priority=3)

        if _NUMERIC_SLUG_RE.search(path):
            return URLClassification(UrlType.ARTICLE, should_crawl=False, should_extract=True, priority=3)

        last_segment = path.rsplit("/", 1)[-1]
        if len(path) > 30 and not _FILE_EXTENSION_RE.search(last_segment):
            return URLClassification(UrlType.ARTICLE, should_crawl=False, should_extract=True, priority=5)

        return _EXTERNAL

    def validate(self, url: str) -> URLValidation:
        if not url or not isinstance(url, str):
            return URLValidation(False, UrlType.EXTERNAL, "Invalid URL")
        parsed = self._parse(url)
        if parsed is None:
            return URLValidation(False, UrlType.EXTERNAL, "Invalid protocol")
        hostname, path = parsed
        if not host_matches(hostname, self.base_hostname):
            return URLValidation(False, UrlType.EXTERNAL, "External domain")
        if _is_social(hostname):
            return URLValidation(False, UrlType.EXTERNAL, "Social domain")

        classification = self.classify(url)
        if classification.type in {UrlType.HOMEPAGE, UrlType.LISTING, UrlType.CATEGORY}:
            return URLValidation(True, UrlType.LISTING, "Listing page - crawl only")
        if classification.type is UrlType.UTILITY:
            return URLValidation(False, UrlType.UTILITY, "Utility page")
        if classification.type is UrlType.ARTICLE:
            return URLValidation(True, UrlType.ARTICLE)
        return URLValidation(False, UrlType.EXTERNAL, "Unknown URL type")

    def is_article_url(self, url: str) -> bool:
        result = self.validate(url)
        return result.valid and result.type is UrlType.ARTICLE

    @staticmethod
    def extract_article_id(url: str) -> str | None:
        for pattern in _ARTICLE_ID_PATTERNS:
            match = pattern.search(url)
            if match:
                return match.group(1)
        return None

    @staticmethod
    def _parse(url: str) -> tuple[str, str] | None:
        try:
            parts = urlsplit(url)
            hostname = parts.hostname or ""
        except ValueError:
            return None
        if parts.scheme not in {"http", "https"} or not hostname:
            return None
        return hostname, parts.path


def _is_social(hostname: str) -> bool:
    return any(host_matches(hostname, domain) for domain in SOCIAL_DOMAINS)


def _is_utility_path(path: str) -> bool:
    return any(segment in UTILITY_SEGMENTS for segment in path.split("/") if segment)
