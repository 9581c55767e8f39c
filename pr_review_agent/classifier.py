"""Event stream classifier.

Folds SessionEvents into an ordered diagnostics log, one entry per event.
The log is the only mutable state; processing never looks ahead, so replaying
the same finite sequence into a fresh classifier yields identical output.
"""

from __future__ import annotations

import json
import shlex
from dataclasses import dataclass, field
from typing import Any, assert_never

from pr_review_agent.events import (
    AssistantEvent,
    ResultEvent,
    SessionEvent,
    SystemInitEvent,
    TextSegment,
    ToolInvocation,
)
from pr_review_agent.outcome import Verdict

_VERDICT_FLAGS = {
    "--request-changes": Verdict.REQUEST_CHANGES,
    "-r": Verdict.REQUEST_CHANGES,
    "--approve": Verdict.APPROVE,
    "-a": Verdict.APPROVE,
    "--comment": Verdict.COMMENT,
    "-c": Verdict.COMMENT,
}
# Options of `gh pr review` whose next token is a value, not a flag
_VALUE_OPTIONS = frozenset({"--body", "-b", "--body-file", "-F", "--repo", "-R"})
_SEPARATOR_CHARS = frozenset("();<>|&")


def _shell_tokens(command: str) -> list[str] | None:
    lexer = shlex.shlex(command, posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    try:
        return list(lexer)
    except ValueError:
        # Unbalanced quotes; the shell would reject the command too
        return None


def _is_separator(token: str) -> bool:
    return bool(token) and set(token) <= _SEPARATOR_CHARS


def _review_flag(args: list[str]) -> Verdict | None:
    """First verdict flag among the option tokens of one `gh pr review` call."""
    skip_value = False
    for token in args:
        if skip_value:
            skip_value = False
            continue
        if token in _VALUE_OPTIONS:
            skip_value = True
        elif token in _VERDICT_FLAGS:
            return _VERDICT_FLAGS[token]
    return None


def detect_review_action(invocation: ToolInvocation) -> Verdict | None:
    """Return the verdict of a `gh pr review` shell call, if this is one.

    When the command runs several reviews, the last one wins.
    """
    if invocation.name != "Bash":
        return None
    command = invocation.input.get("command") or invocation.input.get("cmd")
    if not isinstance(command, str):
        return None
    tokens = _shell_tokens(command)
    if tokens is None:
        return None

    found: Verdict | None = None
    i = 0
    while i < len(tokens):
        if tokens[i : i + 3] != ["gh", "pr", "review"]:
            i += 1
            continue
        end = i + 3
        while end < len(tokens) and not _is_separator(tokens[end]):
            end += 1
        verdict = _review_flag(tokens[i + 3 : end])
        if verdict is not None:
            found = verdict
        i = end
    return found


@dataclass(frozen=True)
class DiagnosticEntry:
    """One audit record.

    Attributes:
        index: Position in arrival order (0-based).
        kind: system_init, assistant, result or skipped.
        payload: JSON-serializable snapshot of the event.
    """

    index: int
    kind: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "kind": self.kind, "payload": self.payload}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, default=str)


def _segment_payload(segment: TextSegment | ToolInvocation) -> dict[str, Any]:
    if isinstance(segment, TextSegment):
        return {"type": "text", "text": segment.body}
    return {"type": "tool_use", "name": segment.name, "input": segment.input}


@dataclass
class EventClassifier:
    """Dispatches events by kind and accumulates diagnostics.

    Attributes:
        entries: Diagnostics log in arrival order.
        result: The terminal ResultEvent once seen.
        review_action: Verdict of the last observed `gh pr review` call.
    """

    entries: list[DiagnosticEntry] = field(default_factory=list)
    result: ResultEvent | None = None
    review_action: Verdict | None = None

    @property
    def terminated(self) -> bool:
        return self.result is not None

    def _append(self, kind: str, payload: dict[str, Any]) -> DiagnosticEntry:
        entry = DiagnosticEntry(index=len(self.entries), kind=kind, payload=payload)
        self.entries.append(entry)
        return entry

    def process(self, event: SessionEvent) -> bool:
        """Fold one event into the diagnostics log.

        Returns:
            True if the event is the terminal ResultEvent.
        """
        if isinstance(event, SystemInitEvent):
            self._append(
                "system_init",
                {
                    "model": event.model,
                    "cwd": event.working_directory,
                    "tools": sorted(event.tool_names),
                    "mcp_servers": list(event.mcp_server_names),
                },
            )
            return False
        if isinstance(event, AssistantEvent):
            for segment in event.segments:
                if isinstance(segment, ToolInvocation):
                    action = detect_review_action(segment)
                    if action is not None:
                        self.review_action = action
            self._append(
                "assistant",
                {"segments": [_segment_payload(s) for s in event.segments]},
            )
            return False
        if isinstance(event, ResultEvent):
            self.result = event
            self._append(
                "result",
                {
                    "subtype": event.subtype.value,
                    "raw_subtype": event.raw_subtype,
                    "duration_ms": event.duration_ms,
                    "num_turns": event.turn_count,
                    "cost_usd": event.cost_usd,
                    "result": event.result_text,
                    "permission_denials": event.permission_denial_count,
                    "session_id": event.session_id,
                    "is_error": event.is_error,
                },
            )
            return True
        assert_never(event)

    def record_skipped(self, error: Exception, message_type: str = "") -> None:
        """Record an event that could not be decoded and was skipped."""
        self._append(
            "skipped",
            {"error": str(error), "message_type": message_type},
        )

    def snapshot(self) -> tuple[DiagnosticEntry, ...]:
        return tuple(self.entries)

    def render(self) -> str:
        """Render the diagnostics log as deterministic JSON lines."""
        return "\n".join(entry.to_json() for entry in self.entries)


def replay(events: list[SessionEvent]) -> EventClassifier:
    """Fold a finite event sequence into a fresh classifier.

    Stops at the first terminal event, as the supervisor does.
    """
    classifier = EventClassifier()
    for event in events:
        if classifier.process(event):
            break
    return classifier
