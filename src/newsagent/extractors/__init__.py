"""Extraction methods and orchestration."""

from __future__ import annotations

__all__ = [
    "Extractor",
    "ExtractionEngine",
    "Bs4HeuristicExtractor",
    "Bs4SelectorExtractor",
    "ReadabilityExtractor",
    "TrafilaturaExtractor",
]

from newsagent.extractors.bs4_heuristic import Bs4HeuristicExtractor, Bs4SelectorExtractor
from newsagent.extractors.engine import ExtractionEngine, Extractor
from newsagent.extractors.readability import ReadabilityExtractor
from newsagent.extractors.trafilatura import TrafilaturaExtractor
