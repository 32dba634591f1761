from __future__ import annotations

import json
from pathlib import Path

from newsagent.models import DiscoveryMethod, ExtractionTrace
from newsagent.reporting.logging import log_event


def test_log_event_writes_json(tmp_path: Path, capsys) -> None:
    log_path = tmp_path / "run.jsonl"
    log_event("test", {"value": 1}, log_path)

    captured = capsys.readouterr().out.strip()
    assert json.loads(captured)["event"] == "test"

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["value"] == 1


def test_log_event_serialises_enums_and_dataclasses(tmp_path: Path, capsys) -> None:
    log_path = tmp_path / "nested" / "events.jsonl"
    trace = ExtractionTrace(url_fetched=True, failure_reason="LISTING_PAGE_DETECTED")

    line = log_event("stage", {"method": DiscoveryMethod.RSS, "trace": trace}, log_path, echo=False)

    assert capsys.readouterr().out == ""
    record = json.loads(line)
    assert record["method"] == "rss"
    assert record["trace"]["failure_reason"] == "LISTING_PAGE_DETECTED"
    assert log_path.read_text(encoding="utf-8").strip() == line
