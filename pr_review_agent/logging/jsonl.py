"""JSONL audit logs for review sessions.

Each session writes one file: a header line describing the request, one line
per diagnostics entry in arrival order, and a footer line with the outcome.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pr_review_agent.config import SessionRequest
    from pr_review_agent.outcome import SessionOutcome

logger = logging.getLogger(__name__)


def _get_timestamp() -> str:
    """Current timestamp in ISO 8601 UTC format with milliseconds."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def audit_log_name(request: SessionRequest, started_at: datetime) -> str:
    """File name for a session's audit log.

    Timestamp first, to the millisecond, so names sort chronologically.
    """
    stamp = started_at.strftime("%Y%m%dT%H%M%S") + f"{started_at.microsecond // 1000:03d}"
    return (
        f"{stamp}-{request.repository_owner}-{request.repository_name}"
        f"-pr{request.pr_number}-{request.commit_sha[:7]}.jsonl"
    )


class AuditLogWriter:
    """Persists a finished session's diagnostics as JSONL."""

    def __init__(self, runs_dir: Path) -> None:
        self.runs_dir = runs_dir

    def write(self, request: SessionRequest, outcome: SessionOutcome) -> Path:
        """Write the audit log and return its path.

        Raises:
            FileExistsError: If a log with the same name already exists. An
                existing log is never overwritten.
        """
        started_at = datetime.now(timezone.utc)
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        path = self.runs_dir / audit_log_name(request, started_at)

        header: dict[str, Any] = {
            "type": "session",
            "timestamp": _get_timestamp(),
            "repository": request.repository,
            "pr_number": request.pr_number,
            "commit_sha": request.commit_sha,
            "model": request.limits.model,
            "max_turns": request.limits.max_turns,
        }
        result = outcome.result
        footer: dict[str, Any] = {
            "type": "outcome",
            "verdict": outcome.verdict.value,
            "abort_reason": outcome.abort_reason.value if outcome.abort_reason else None,
            "note": outcome.note,
            "review_submitted": outcome.review_submitted,
            "duration_ms": result.duration_ms if result else None,
            "num_turns": result.turn_count if result else None,
            "cost_usd": result.cost_usd if result else None,
        }

        with path.open("x") as f:
            f.write(json.dumps(header) + "\n")
            for entry in outcome.diagnostics:
                f.write(json.dumps({"type": "event", **entry.to_dict()}, default=str) + "\n")
            f.write(json.dumps(footer) + "\n")

        logger.debug("Wrote audit log %s (%d events)", path, len(outcome.diagnostics))
        return path


@dataclass(frozen=True)
class AuditLogSummary:
    """Header and footer fields of one audit log, for listing."""

    path: Path
    timestamp: str
    repository: str
    pr_number: str
    verdict: str
    num_turns: int | None
    cost_usd: float | None
    note: str | None


def read_audit_summary(path: Path) -> AuditLogSummary | None:
    """Parse the header and footer of an audit log.

    Returns None for files that are not complete audit logs.
    """
    try:
        lines = path.read_text().splitlines()
    except OSError:
        return None
    if len(lines) < 2:
        return None
    try:
        header = json.loads(lines[0])
        footer = json.loads(lines[-1])
    except json.JSONDecodeError:
        return None
    if header.get("type") != "session" or footer.get("type") != "outcome":
        return None
    return AuditLogSummary(
        path=path,
        timestamp=str(header.get("timestamp", "")),
        repository=str(header.get("repository", "")),
        pr_number=str(header.get("pr_number", "")),
        verdict=str(footer.get("verdict", "")),
        num_turns=footer.get("num_turns"),
        cost_usd=footer.get("cost_usd"),
        note=footer.get("note"),
    )


def list_audit_logs(runs_dir: Path, limit: int | None = None) -> list[AuditLogSummary]:
    """List audit logs newest first, skipping unreadable files."""
    if not runs_dir.exists():
        return []
    files = sorted(runs_dir.glob("*.jsonl"), key=lambda p: p.name, reverse=True)
    summaries = [s for s in (read_audit_summary(p) for p in files) if s is not None]
    return summaries[:limit] if limit is not None else summaries
