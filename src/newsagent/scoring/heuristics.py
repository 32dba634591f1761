from __future__ import annotations

from dataclasses import dataclass

from newsagent.models import NormalizedArticle

FEED_SELECTOR_MARKERS = ("rss", "feed", "xml", "sitemap")
RSS_USED_AS_ARTICLE_SOURCE = "RSS_USED_AS_ARTICLE_SOURCE"


@dataclass(frozen=True)
class HeuristicThresholds:
    min_chars: int = 200
    min_words: int = 30


def evaluate_text(text: str, thresholds: HeuristicThresholds | None = None) -> tuple[str, float]:
    thresholds = thresholds or HeuristicThresholds()
    text = text.strip()
    if not text:
        return "TOO_SHORT", 0.0

    char_count = len(text)
    word_count = len(text.split())

    if char_count < thresholds.min_chars or word_count < thresholds.min_words:
        score = min(char_count / thresholds.min_chars, word_count / thresholds.min_words)
        return "TOO_SHORT", max(score, 0.0)

    score = min(char_count / thresholds.min_chars, word_count / thresholds.min_words)
    return "ACCEPT", score


@dataclass(frozen=True)
class HardRequirements:
    min_content_length: int = 300
    min_paragraphs: int = 3
    min_description_length: int = 50


def is_feed_selector(selector: str) -> bool:
    lowered = selector.lower()
    return any(marker in lowered for marker in FEED_SELECTOR_MARKERS)


def check_hard_requirements(
    article: NormalizedArticle, requirements: HardRequirements | None = None
) -> str | None:
    """Return the reason ``article`` fails the structural gate, or ``None``.

    Independent of the quality score: an article must come from page-level
    extraction, carry enough prose, a title and either an image or a
    meaningful description.
    """
    requirements = requirements or HardRequirements()
    trace = article.extraction_trace
    if is_feed_selector(trace.root_selector):
        return RSS_USED_AS_ARTICLE_SOURCE

    missing: list[str] = []
    if len(article.content) < requirements.min_content_length:
        missing.append(f"content too short ({len(article.content)} < {requirements.min_content_length})")
    if trace.paragraphs_found < requirements.min_paragraphs:
        missing.append(f"insufficient paragraphs ({trace.paragraphs_found} < {requirements.min_paragraphs})")
    if not article.title.strip():
        missing.append("missing title")
    if not article.image.strip() and len(article.description) <= requirements.min_description_length:
        missing.append("missing image and description")
    if not trace.url_fetched:
        missing.append("article page was not fetched")
    if missing:
        return "Hard validation failed: " + ", ".join(missing)
    return None
