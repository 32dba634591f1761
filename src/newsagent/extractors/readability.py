from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup
from readability import Document

from newsagent.models import ExtractionResult
from newsagent.utils import collapse_whitespace


@dataclass
class ReadabilityExtractor:
    name: str = "readability"

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        doc = Document(html, url=url or None)
        title = doc.short_title() or None
        content = doc.summary(html_partial=True)
        paragraphs = _paragraphs(content)
        text = "\n\n".join(paragraphs)

        return ExtractionResult(
            method=self.name,
            title=title,
            text=text,
            paragraphs=paragraphs,
            success=bool(text),
            error=None if text else "No content extracted",
        )


def _paragraphs(html: str) -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    blocks = [collapse_whitespace(tag.get_text(" ", strip=True)) for tag in soup.find_all(["p", "li", "blockquote"])]
    blocks = [block for block in blocks if block]
    if blocks:
        return blocks
    text = collapse_whitespace(soup.get_text(" ", strip=True))
    return [text] if text else []
