from __future__ import annotations

from dataclasses import dataclass

import trafilatura

from newsagent.extractors.fields import to_iso8601
from newsagent.models import ExtractionResult


@dataclass
class TrafilaturaExtractor:
    name: str = "trafilatura"

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        text = trafilatura.extract(html, url=url or None, include_comments=False, include_tables=False) or ""
        paragraphs = [line.strip() for line in text.splitlines() if line.strip()]

        metadata = trafilatura.extract_metadata(html, default_url=url or None)
        title = description = image = author = published_at = category = None
        if metadata is not None:
            title = metadata.title or None
            description = metadata.description or None
            image = metadata.image or None
            author = metadata.author or None
            published_at = to_iso8601(metadata.date)
            categories = metadata.categories or []
            category = categories[0] if categories else None

        joined = "\n\n".join(paragraphs)
        return ExtractionResult(
            method=self.name,
            title=title,
            text=joined,
            paragraphs=paragraphs,
            description=description,
            image=image,
            author=author,
            published_at=published_at,
            category=category,
            success=bool(joined),
            error=None if joined else "No content extracted",
        )
