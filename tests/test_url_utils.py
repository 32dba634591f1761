from __future__ import annotations

from newsagent.discovery.url_utils import (
    absolutise,
    canonicalise_url,
    host_matches,
    hostname_of,
    is_http_url,
    source_domain,
)


def test_canonicalise_url_strips_utm_and_fragment() -> None:
    url = "https://Example.com/path?utm_source=abc&utm_campaign=test&keep=1#section"
    assert canonicalise_url(url) == "https://example.com/path?keep=1"


def test_hostname_of_drops_www() -> None:
    assert hostname_of("https://www.example.com/news/a") == "example.com"
    assert hostname_of("not a url") == ""


def test_source_domain_falls_back_to_input() -> None:
    assert source_domain("https://www.example.com/a") == "example.com"
    assert source_domain("relative/path") == "relative/path"


def test_host_matches_subdomains_only() -> None:
    assert host_matches("news.example.com", "example.com")
    assert host_matches("www.example.com", "example.com")
    assert not host_matches("badexample.com", "example.com")
    assert not host_matches("", "example.com")


def test_is_http_url() -> None:
    assert is_http_url("https://example.com")
    assert not is_http_url("ftp://example.com/file")
    assert not is_http_url("/relative")


def test_absolutise_skips_non_navigable_hrefs() -> None:
    assert absolutise("https://example.com/news/", "story-a") == "https://example.com/news/story-a"
    assert absolutise("https://example.com/", "/feed") == "https://example.com/feed"
    assert absolutise("https://example.com/", "javascript:void(0)") == ""
    assert absolutise("https://example.com/", "mailto:desk@example.com") == ""
    assert absolutise("https://example.com/", None) == ""
