from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from newsagent.models import AgentResult, NormalizedArticle


@dataclass(frozen=True)
class RunSummary:
    method: str
    success: bool
    total: int
    accepted: int
    failed: int
    acceptance_rate: float
    browser_fallbacks: int


def compute_run_summary(result: AgentResult) -> RunSummary:
    total = len(result.articles)
    accepted = len(result.accepted)
    acceptance_rate = 0.0
    if total:
        acceptance_rate = accepted / total
    return RunSummary(
        method=result.method.value,
        success=result.success,
        total=total,
        accepted=accepted,
        failed=total - accepted,
        acceptance_rate=acceptance_rate,
        browser_fallbacks=sum(1 for article in result.articles if article.extraction_trace.fallback_used),
    )


def summarize_failures(articles: Iterable[NormalizedArticle]) -> dict[str, int]:
    """Count failed records by reason; the detail after the first ``:`` is dropped."""
    failures: Counter[str] = Counter()
    for article in articles:
        if not article.extraction_failed:
            continue
        reason = article.extraction_trace.failure_reason or "UNKNOWN"
        failures[reason.split(":", 1)[0].strip()] += 1
    return dict(failures)
