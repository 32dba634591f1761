"""Discovery layer: URL classification, feeds, sitemaps and homepage links."""

from __future__ import annotations

__all__ = [
    "URLClassifier",
    "RSSDiscoverer",
    "SitemapDiscoverer",
    "ListingDiscoverer",
    "SourceType",
    "canonicalise_url",
    "select_strategies",
]

from newsagent.discovery.listing import ListingDiscoverer
from newsagent.discovery.rss import RSSDiscoverer
from newsagent.discovery.sitemap import SitemapDiscoverer
from newsagent.discovery.strategies import SourceType, select_strategies
from newsagent.discovery.url_classifier import URLClassifier
from newsagent.discovery.url_utils import canonicalise_url
