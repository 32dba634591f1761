"""Run reporting and structured event logs."""

from __future__ import annotations

__all__ = ["RunSummary", "compute_run_summary", "log_event", "summarize_failures"]

from newsagent.reporting.logging import log_event
from newsagent.reporting.metrics import RunSummary, compute_run_summary, summarize_failures
