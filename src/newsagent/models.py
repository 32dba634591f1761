from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UrlType(str, Enum):
    HOMEPAGE = "homepage"
    LISTING = "listing"
    CATEGORY = "category"
    ARTICLE = "article"
    UTILITY = "utility"
    EXTERNAL = "external"


class DiscoveryMethod(str, Enum):
    RSS = "rss"
    SITEMAP = "sitemap"
    SCRAPING = "scraping"
    EXTRACTION = "extraction"


@dataclass(frozen=True)
class URLClassification:
    type: UrlType
    should_crawl: bool
    should_extract: bool
    priority: int


@dataclass(frozen=True)
class URLValidation:
    valid: bool
    type: UrlType
    reason: str | None = None


@dataclass(frozen=True)
class QualityResult:
    is_valid: bool
    score: int
    reasons: list[str] = field(default_factory=list)
    is_listing_page: bool = False
    is_contact_page: bool = False
    is_advertisement: bool = False
    is_footer_content: bool = False
    has_real_article_content: bool = False


@dataclass
class FetchResult:
    url: str
    status_code: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    content: str | None = None
    error: str | None = None
    elapsed_ms: int | None = None
    fetched_at: datetime = field(default_factory=_utc_now)

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.content)


@dataclass
class ExtractionResult:
    method: str
    title: str | None = None
    text: str | None = None
    paragraphs: list[str] = field(default_factory=list)
    description: str | None = None
    image: str | None = None
    author: str | None = None
    published_at: str | None = None
    category: str | None = None
    root_selector: str | None = None
    success: bool = True
    error: str | None = None

    @property
    def content_length(self) -> int:
        return len(self.text or "")


@dataclass
class ExtractionTrace:
    """Audit record describing how an article was obtained and judged."""

    url_fetched: bool = False
    fetch_method: str = "html"
    root_selector: str = ""
    paragraphs_found: int = 0
    content_length: int = 0
    fallback_used: bool = False
    failure_reason: str | None = None
    quality_score: int | None = None
    quality_reasons: list[str] | None = None
    is_listing_page: bool | None = None
    is_contact_page: bool | None = None
    is_advertisement: bool | None = None
    bot_protection: str | None = None


@dataclass(frozen=True)
class NormalizedArticle:
    source: str
    url: str
    title: str = ""
    description: str = ""
    content: str = ""
    image: str = ""
    author: str = ""
    published_at: str | None = None
    category: str = ""
    language: str = "en"
    extraction_trace: ExtractionTrace = field(default_factory=ExtractionTrace)
    extraction_failed: bool = True
    created_at: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass
class AgentResult:
    articles: list[NormalizedArticle]
    success: bool
    method: DiscoveryMethod
    error: str | None = None

    @property
    def accepted(self) -> list[NormalizedArticle]:
        return [article for article in self.articles if not article.extraction_failed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "articles": [article.to_dict() for article in self.articles],
            "success": self.success,
            "method": self.method.value,
            "error": self.error,
        }
