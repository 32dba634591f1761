from __future__ import annotations

from conftest import ARTICLE_PARAGRAPHS, ARTICLE_TITLE, build_article_html

from newsagent.config import QualityConfig
from newsagent.scoring.quality import (
    ContentValidator,
    calculate_content_quality_score,
    split_paragraphs,
    title_coverage,
)

ARTICLE_TEXT = "\n\n".join(ARTICLE_PARAGRAPHS)


def test_real_article_passes() -> None:
    result = ContentValidator().validate(ARTICLE_TEXT, ARTICLE_TITLE, html=build_article_html())

    assert result.is_valid
    assert result.has_real_article_content
    assert result.score == 100
    assert result.reasons == []


def test_missing_structure_indicators_cost_points() -> None:
    result = ContentValidator().validate(ARTICLE_TEXT, ARTICLE_TITLE)

    assert result.score == 75
    assert "No article structure indicators found" in result.reasons
    assert result.is_valid


def test_empty_content() -> None:
    result = ContentValidator().validate("", ARTICLE_TITLE)

    assert not result.is_valid
    assert result.score == 0
    assert result.reasons == ["Empty content"]
    assert not any([result.is_contact_page, result.is_listing_page, result.is_advertisement])


def test_contact_page_fails_regardless_of_score() -> None:
    contact = (
        "Contact us at the harbour office for festival enquiries and stall bookings this season.\n\n"
        "Phone: 555 123 4567 during office hours, or leave a message with the harbour master.\n\n"
        "Email: desk@example.com and a member of the festival team will reply within the week."
    )
    result = ContentValidator().validate(ARTICLE_TEXT + "\n\n" + contact, ARTICLE_TITLE, html="<article>")

    assert result.is_contact_page
    assert not result.is_valid
    assert not result.has_real_article_content


def test_listing_page_detected() -> None:
    listing = "\n\n".join(
        [
            "Harbour festival draws record crowds along the waterfront. Read more",
            "Lantern parade closes the festival on Sunday evening. Continue reading",
            "Volunteers keep the walkways clear for visitors. View all",
            "Next page of harbour stories",
        ]
    )
    result = ContentValidator().validate(listing, "Harbour news", html="<article>")

    assert result.is_listing_page
    assert not result.is_valid
    assert "Listing page content detected" in result.reasons


def test_advertisement_detected() -> None:
    text = ARTICLE_TEXT + "\n\nThis sponsored feature is paid content from a local ferry operator."
    result = ContentValidator().validate(text, ARTICLE_TITLE, html="<article>")

    assert result.is_advertisement
    assert not result.is_valid


def test_short_content_penalties() -> None:
    result = ContentValidator().validate("One short paragraph about the harbour festival.", ARTICLE_TITLE)

    assert not result.is_valid
    assert any(reason.startswith("Too few paragraphs") for reason in result.reasons)
    assert any(reason.startswith("Content too short") for reason in result.reasons)
    assert result.score == 0


def test_validator_is_deterministic() -> None:
    validator = ContentValidator()
    first = validator.validate(ARTICLE_TEXT, ARTICLE_TITLE, "https://example.com/news/a")
    second = validator.validate(ARTICLE_TEXT, ARTICLE_TITLE, "https://example.com/news/a")
    assert first == second


def test_thresholds_are_configurable() -> None:
    validator = ContentValidator(QualityConfig(min_paragraphs=6))
    result = validator.validate(ARTICLE_TEXT, ARTICLE_TITLE, html="<article>")

    assert not result.is_valid
    assert "Too few paragraphs (4 < 6)" in result.reasons


def test_validate_html() -> None:
    result = ContentValidator().validate_html(build_article_html(), "https://example.com/news/a")
    assert result.is_valid


def test_is_listing_page_by_url_and_markup() -> None:
    validator = ContentValidator()
    assert validator.is_listing_page("<html></html>", "https://example.com/news/")
    assert validator.is_listing_page("<html></html>", "https://example.com/tag/harbour/")
    html = '<ul class="pagination"></ul><div class="paging"></div>'
    assert validator.is_listing_page(html, "https://example.com/harbour")
    assert not validator.is_listing_page(build_article_html(), "https://example.com/news/harbour-festival")


def test_split_paragraphs_and_title_coverage() -> None:
    assert split_paragraphs("short\n\n" + ARTICLE_PARAGRAPHS[0]) == [ARTICLE_PARAGRAPHS[0]]
    assert title_coverage(ARTICLE_TITLE, ARTICLE_TEXT) == 0.8
    assert title_coverage("a an", ARTICLE_TEXT) == 0.0


def test_calculate_content_quality_score() -> None:
    assert calculate_content_quality_score("tiny", ARTICLE_TITLE, ["tiny"]) == 0
    assert calculate_content_quality_score(ARTICLE_TEXT, ARTICLE_TITLE, ARTICLE_PARAGRAPHS) == 95
