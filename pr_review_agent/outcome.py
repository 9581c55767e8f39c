"""Session outcome types.

A SessionOutcome is derived once, after the terminal event or after the
stream faults, and is never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pr_review_agent.classifier import DiagnosticEntry
    from pr_review_agent.events import ResultEvent


class Verdict(Enum):
    APPROVE = "approve"
    COMMENT = "comment"
    REQUEST_CHANGES = "request_changes"
    ABORTED = "aborted"


class AbortReason(Enum):
    """Why a session ended without a successful terminal result."""

    TURN_LIMIT = "turn_limit"
    EXECUTION_ERROR = "execution_error"
    UNEXPECTED_RESULT = "unexpected_result"
    STREAM_ENDED = "stream_ended"
    TIMEOUT = "timeout"


# Diagnostic notes attached to aborted outcomes
NOTE_TURN_LIMIT = "turn limit reached"
NOTE_EXECUTION_ERROR = "runtime execution error"
NOTE_STREAM_ENDED = "stream ended without terminal result"


@dataclass(frozen=True)
class SessionOutcome:
    """Final disposition of a review session.

    Attributes:
        verdict: Review verdict, or ABORTED when no successful result arrived.
        summary_text: Final result text (success) or the abort note.
        diagnostics: Audit log of every processed event, in arrival order.
        abort_reason: Set only when verdict is ABORTED.
        note: Diagnostic note explaining an abort.
        result: The terminal result event, if one arrived.
        review_submitted: Whether a review submission by the agent was observed.
    """

    verdict: Verdict
    summary_text: str
    diagnostics: tuple[DiagnosticEntry, ...] = ()
    abort_reason: AbortReason | None = None
    note: str | None = None
    result: ResultEvent | None = None
    review_submitted: bool = False

    def __post_init__(self) -> None:
        if (self.verdict is Verdict.ABORTED) != (self.abort_reason is not None):
            raise ValueError("abort_reason must be set exactly when verdict is ABORTED")

    @property
    def aborted(self) -> bool:
        return self.verdict is Verdict.ABORTED
