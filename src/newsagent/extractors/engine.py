from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol

from newsagent.models import ExtractionResult
from newsagent.scoring.heuristics import HeuristicThresholds, evaluate_text


class Extractor(Protocol):
    name: str

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        ...


@dataclass
class ExtractionEngine:
    extractors: list[Extractor]
    thresholds: HeuristicThresholds = field(default_factory=HeuristicThresholds)
    log: Callable[[str], None] | None = None

    def run(self, html: str, url: str = "") -> ExtractionResult | None:
        """Try each extractor in order and return the first accepted result.

        When none is accepted, the longest successful result is returned so
        callers can still report what was found; ``None`` when every
        extractor failed or produced nothing.
        """
        best: ExtractionResult | None = None
        for extractor in self.extractors:
            try:
                result = extractor.extract(html, url)
            except Exception as exc:
                if self.log:
                    self.log(f"[extract] {extractor.name} failed on {url}: {exc}")
                continue

            result.text = (result.text or "").replace("\x00", "")
            decision, score = evaluate_text(result.text, self.thresholds)
            if self.log:
                self.log(f"[extract] {extractor.name} {decision} ({score:.2f}) {url}")
            if decision == "ACCEPT":
                return result
            if result.text and (best is None or result.content_length > best.content_length):
                best = result
        return best
