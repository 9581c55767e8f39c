"""OutcomeReporter: final pipeline stage.

Turns a SessionOutcome into the operator-facing summary, the persisted audit
log, and the process exit code. The agent submits its own review through
tool calls during the session, so the reporter never contacts the review
platform; an aborted session only makes the process fail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pr_review_agent.logging.console import Colors, log

if TYPE_CHECKING:
    from pathlib import Path

    from pr_review_agent.config import SessionRequest
    from pr_review_agent.logging.jsonl import AuditLogWriter
    from pr_review_agent.outcome import SessionOutcome

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SESSION_ABORTED = 2


class DuplicateReportError(Exception):
    """Raised when report() is called again for an already reported outcome."""


def format_summary(outcome: SessionOutcome) -> list[str]:
    """Build the multi-line session summary.

    Duration, turns and cost come from the terminal result; sessions that
    ended without one report "n/a" for those fields.
    """
    result = outcome.result
    lines = ["=== Review Completed ===" if not outcome.aborted else "=== Review Aborted ==="]
    if result is not None:
        lines.append(f"Duration: {result.duration_ms}ms")
        lines.append(f"Turns: {result.turn_count}")
        lines.append(f"Cost: ${result.cost_usd:.4f}")
        lines.append(f"Status: {result.raw_subtype or result.subtype.value}")
    else:
        lines.append("Duration: n/a")
        lines.append("Turns: n/a")
        lines.append("Cost: n/a")
        lines.append("Status: no result")
    lines.append(f"Verdict: {outcome.verdict.value}")
    if outcome.aborted:
        lines.append(f"Reason: {outcome.summary_text}")
    elif outcome.summary_text:
        lines.append(f"Result: {outcome.summary_text}")
    if result is not None and result.permission_denial_count > 0:
        lines.append(f"Permission denials: {result.permission_denial_count}")
    return lines


@dataclass
class OutcomeReporter:
    """Reports each SessionOutcome exactly once.

    Attributes:
        request: The request the outcome belongs to (used for the audit log).
        audit_writer: Persists diagnostics; None skips persistence.
        require_review: Treat a successful session without an observed
            review submission as a failure.
    """

    request: SessionRequest | None = None
    audit_writer: AuditLogWriter | None = None
    require_review: bool = False
    audit_log_path: Path | None = field(default=None, init=False)
    _reported: list[SessionOutcome] = field(
        default_factory=list, init=False, repr=False
    )

    def exit_code_for(self, outcome: SessionOutcome) -> int:
        if outcome.aborted:
            return EXIT_SESSION_ABORTED
        if self.require_review and not outcome.review_submitted:
            return EXIT_SESSION_ABORTED
        return EXIT_OK

    def report(self, outcome: SessionOutcome) -> int:
        """Log the summary, persist diagnostics and return the exit code.

        Raises:
            DuplicateReportError: If this outcome was already reported. No
                output is produced in that case.
        """
        if any(reported is outcome for reported in self._reported):
            raise DuplicateReportError("session outcome was already reported")
        self._reported.append(outcome)

        color = Colors.RED if outcome.aborted else Colors.GREEN
        print()
        for line in format_summary(outcome):
            log("◐", line, color if line.startswith("===") else Colors.RESET)

        result = outcome.result
        if outcome.note is not None and result is not None:
            log("⚠", f"Review ended early: {outcome.note}", Colors.YELLOW)

        if self.audit_writer is not None and self.request is not None:
            try:
                self.audit_log_path = self.audit_writer.write(self.request, outcome)
            except OSError as e:
                log("⚠", f"Could not write audit log: {e}", Colors.YELLOW)
            else:
                log("◐", f"audit log: {self.audit_log_path}", Colors.MUTED)

        exit_code = self.exit_code_for(outcome)
        if exit_code == EXIT_OK:
            log("✓", "PR review agent completed successfully", Colors.GREEN)
        elif not outcome.aborted:
            log("✗", "No review submission was observed", Colors.RED)
        else:
            log("✗", "PR review agent aborted", Colors.RED)
        logger.debug("Reported outcome verdict=%s exit=%d", outcome.verdict.value, exit_code)
        return exit_code
