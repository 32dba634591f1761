from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


UTM_PREFIX = "utm_"


def canonicalise_url(url: str) -> str:
    parts = urlsplit(url.strip())
    query_pairs = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not key.lower().startswith(UTM_PREFIX)
    ]
    query = urlencode(query_pairs, doseq=True)
    normalized = parts._replace(netloc=parts.netloc.lower(), query=query, fragment="")
    return urlunsplit(normalized)


def strip_www(hostname: str) -> str:
    hostname = hostname.lower().rstrip(".")
    return hostname[4:] if hostname.startswith("www.") else hostname


def hostname_of(url: str) -> str:
    """Hostname of ``url`` without a leading ``www.``; empty when unparsable."""
    try:
        return strip_www(urlsplit(url).hostname or "")
    except ValueError:
        return ""


def source_domain(url: str) -> str:
    return hostname_of(url) or url


def is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def host_matches(hostname: str, domain: str) -> bool:
    """True when ``hostname`` is ``domain`` or one of its subdomains."""
    hostname = strip_www(hostname)
    domain = strip_www(domain)
    if not hostname or not domain:
        return False
    return hostname == domain or hostname.endswith(f".{domain}")


def absolutise(base_url: str, href: str | None) -> str:
    if not href:
        return ""
    href = href.strip()
    if href.startswith(("data:", "javascript:", "mailto:", "tel:")):
        return ""
    try:
        return urljoin(base_url, href)
    except ValueError:
        return ""
