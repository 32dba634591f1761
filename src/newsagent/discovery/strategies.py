from __future__ import annotations

from enum import Enum

from newsagent.models import DiscoveryMethod

CASCADE = (
    DiscoveryMethod.RSS,
    DiscoveryMethod.SITEMAP,
    DiscoveryMethod.SCRAPING,
    DiscoveryMethod.EXTRACTION,
)


class SourceType(str, Enum):
    AUTO = "auto"
    RSS = "rss"
    SITEMAP = "sitemap"
    SCRAPING = "scraping"
    EXTRACTION = "extraction"


def select_strategies(source_type: SourceType | str | None) -> list[DiscoveryMethod]:
    """Discovery stages to run, in order, for a requested source type."""
    if source_type is None:
        return list(CASCADE)
    try:
        kind = SourceType(str(getattr(source_type, "value", source_type)).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown source type: {source_type!r}") from exc
    if kind is SourceType.AUTO:
        return list(CASCADE)
    return [DiscoveryMethod(kind.value)]
