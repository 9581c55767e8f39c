"""Unit tests for JSONL audit logs in pr_review_agent/logging/jsonl.py."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest

from pr_review_agent.classifier import replay
from pr_review_agent.config import SessionRequest, build_session_request
from pr_review_agent.events import (
    AssistantEvent,
    ResultEvent,
    ResultSubtype,
    SystemInitEvent,
    TextSegment,
)
from pr_review_agent.logging import jsonl
from pr_review_agent.logging.jsonl import (
    AuditLogWriter,
    audit_log_name,
    list_audit_logs,
    read_audit_summary,
)
from pr_review_agent.outcome import NOTE_STREAM_ENDED, AbortReason, SessionOutcome, Verdict

if TYPE_CHECKING:
    from pathlib import Path


def make_request(pr_number: str = "42") -> SessionRequest:
    return build_session_request("acme", "widgets", pr_number, "0123456789abcdef")


def make_outcome() -> SessionOutcome:
    result = ResultEvent(
        subtype=ResultSubtype.SUCCESS,
        duration_ms=4200,
        turn_count=3,
        cost_usd=0.12,
        result_text="Approved, no issues",
        raw_subtype="success",
    )
    classifier = replay(
        [
            SystemInitEvent(model="m1", working_directory="/repo"),
            AssistantEvent(segments=(TextSegment(body="Checking diff"),)),
            result,
        ]
    )
    return SessionOutcome(
        verdict=Verdict.APPROVE,
        summary_text="Approved, no issues",
        diagnostics=classifier.snapshot(),
        result=result,
        review_submitted=True,
    )


def test_audit_log_name() -> None:
    started_at = datetime(2024, 5, 1, 12, 30, 45, 678900, tzinfo=timezone.utc)

    name = audit_log_name(make_request(), started_at)

    assert name == "20240501T123045678-acme-widgets-pr42-0123456.jsonl"


def test_write_header_events_footer(tmp_path: Path) -> None:
    path = AuditLogWriter(tmp_path).write(make_request(), make_outcome())

    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert [line["type"] for line in lines] == ["session", "event", "event", "event", "outcome"]
    assert lines[0]["repository"] == "acme/widgets"
    assert lines[0]["commit_sha"] == "0123456789abcdef"
    assert [line["kind"] for line in lines[1:4]] == ["system_init", "assistant", "result"]
    assert lines[-1]["verdict"] == "approve"
    assert lines[-1]["review_submitted"] is True
    assert lines[-1]["abort_reason"] is None


def test_write_creates_runs_dir(tmp_path: Path) -> None:
    runs_dir = tmp_path / "nested" / "runs"

    path = AuditLogWriter(runs_dir).write(make_request(), make_outcome())

    assert path.parent == runs_dir


def test_aborted_outcome_footer(tmp_path: Path) -> None:
    outcome = SessionOutcome(
        verdict=Verdict.ABORTED,
        summary_text=NOTE_STREAM_ENDED,
        abort_reason=AbortReason.STREAM_ENDED,
        note=NOTE_STREAM_ENDED,
    )

    path = AuditLogWriter(tmp_path).write(make_request(), outcome)
    summary = read_audit_summary(path)

    assert summary is not None
    assert summary.verdict == "aborted"
    assert summary.note == NOTE_STREAM_ENDED
    assert summary.num_turns is None
    assert summary.cost_usd is None


def test_read_summary_rejects_non_audit_files(tmp_path: Path) -> None:
    garbage = tmp_path / "garbage.jsonl"
    garbage.write_text("not json\nstill not json\n")
    short = tmp_path / "short.jsonl"
    short.write_text('{"type": "session"}\n')

    assert read_audit_summary(garbage) is None
    assert read_audit_summary(short) is None
    assert read_audit_summary(tmp_path / "missing.jsonl") is None


def test_list_audit_logs_newest_first(tmp_path: Path) -> None:
    writer = AuditLogWriter(tmp_path)
    first = writer.write(make_request("1"), make_outcome())
    second = writer.write(make_request("2"), make_outcome())
    older = tmp_path / "20000101T000000-acme-widgets-pr0-0123456.jsonl"
    older.write_text(first.read_text())
    (tmp_path / "broken.jsonl").write_text("{}\n")

    summaries = list_audit_logs(tmp_path)

    assert summaries[-1].path == older
    assert {s.pr_number for s in summaries[:2]} == {"1", "2"}
    assert second in {s.path for s in summaries}
    assert len(list_audit_logs(tmp_path, limit=1)) == 1


def test_list_audit_logs_missing_dir(tmp_path: Path) -> None:
    assert list_audit_logs(tmp_path / "nope") == []


def test_existing_log_is_never_overwritten(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(jsonl, "audit_log_name", lambda request, started_at: "same.jsonl")
    writer = AuditLogWriter(tmp_path)
    path = writer.write(make_request("1"), make_outcome())
    original = path.read_text()

    with pytest.raises(FileExistsError):
        writer.write(make_request("2"), make_outcome())

    assert path.read_text() == original
