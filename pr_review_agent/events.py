"""Session event model and SDK message decoding.

SessionEvent is a closed union of three kinds:

- AssistantEvent: ordered text and tool-invocation segments of one turn
- SystemInitEvent: runtime initialization details
- ResultEvent: the single terminal event of a session

decode_event() maps Claude Agent SDK messages onto this union. Message kinds
the orchestrator does not observe (tool-result echoes, non-init system
messages, partial stream events) decode to None.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from claude_agent_sdk import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolUseBlock,
)


class EventDecodeError(Exception):
    """Raised when a single SDK message cannot be decoded into a SessionEvent."""


class ResultSubtype(Enum):
    SUCCESS = "success"
    ERROR_MAX_TURNS = "error_max_turns"
    ERROR_DURING_EXECUTION = "error_during_execution"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str) -> ResultSubtype:
        for member in cls:
            if member is not cls.OTHER and member.value == raw:
                return member
        return cls.OTHER


@dataclass(frozen=True)
class TextSegment:
    body: str


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call made by the agent. Recorded for audit, never re-executed."""

    name: str
    input: dict[str, Any] = field(default_factory=dict)


Segment = TextSegment | ToolInvocation


@dataclass(frozen=True)
class AssistantEvent:
    segments: tuple[Segment, ...] = ()


@dataclass(frozen=True)
class SystemInitEvent:
    model: str
    working_directory: str
    tool_names: frozenset[str] = frozenset()
    mcp_server_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResultEvent:
    """Terminal event of a session.

    Attributes:
        subtype: Classified result subtype.
        duration_ms: Wall-clock duration reported by the runtime.
        turn_count: Number of turns the runtime executed.
        cost_usd: Total cost reported by the runtime (0.0 when unreported).
        result_text: Final assistant text, if any.
        permission_denial_count: Number of tool calls the runtime refused.
        raw_subtype: Subtype string exactly as the runtime reported it.
        session_id: Runtime session identifier, if any.
        is_error: Runtime error flag.
    """

    subtype: ResultSubtype
    duration_ms: int
    turn_count: int
    cost_usd: float
    result_text: str | None = None
    permission_denial_count: int = 0
    raw_subtype: str = ""
    session_id: str | None = None
    is_error: bool = False


SessionEvent = AssistantEvent | SystemInitEvent | ResultEvent


def _decode_assistant(message: AssistantMessage) -> AssistantEvent:
    content = message.content
    if not isinstance(content, list):
        raise EventDecodeError(
            f"assistant message content must be a list, got {type(content).__name__}"
        )
    segments: list[Segment] = []
    for block in content:
        if isinstance(block, TextBlock):
            segments.append(TextSegment(body=block.text))
        elif isinstance(block, ToolUseBlock):
            if not isinstance(block.input, dict):
                raise EventDecodeError(
                    f"tool input for {block.name!r} must be an object, "
                    f"got {type(block.input).__name__}"
                )
            segments.append(
                ToolInvocation(name=block.name, input=copy.deepcopy(block.input))
            )
        # Thinking and tool-result blocks are not observed
    return AssistantEvent(segments=tuple(segments))


def _server_name(server: object) -> str:
    if isinstance(server, dict):
        name = server.get("name")
        if isinstance(name, str):
            return name
    elif isinstance(server, str):
        return server
    raise EventDecodeError(f"unrecognized MCP server entry: {server!r}")


def _decode_system_init(data: object) -> SystemInitEvent:
    if not isinstance(data, dict):
        raise EventDecodeError(
            f"system init payload must be an object, got {type(data).__name__}"
        )
    tools = data.get("tools") or []
    servers = data.get("mcp_servers") or []
    if not isinstance(tools, list) or not isinstance(servers, list):
        raise EventDecodeError("system init tools and mcp_servers must be lists")
    return SystemInitEvent(
        model=str(data.get("model", "")),
        working_directory=str(data.get("cwd", "")),
        tool_names=frozenset(str(t) for t in tools),
        mcp_server_names=tuple(_server_name(s) for s in servers),
    )


def _decode_result(message: ResultMessage) -> ResultEvent:
    denials = getattr(message, "permission_denials", None) or []
    try:
        return ResultEvent(
            subtype=ResultSubtype.parse(message.subtype),
            duration_ms=int(message.duration_ms),
            turn_count=int(message.num_turns),
            cost_usd=float(message.total_cost_usd or 0.0),
            result_text=message.result,
            permission_denial_count=len(denials),
            raw_subtype=message.subtype,
            session_id=message.session_id,
            is_error=bool(message.is_error),
        )
    except (TypeError, ValueError) as e:
        raise EventDecodeError(f"malformed result message: {e}") from e


def decode_event(message: object) -> SessionEvent | None:
    """Decode one SDK message.

    Returns:
        The decoded SessionEvent, or None for message kinds that are not
        observed.

    Raises:
        EventDecodeError: If the message is one of the observed kinds but its
            payload is malformed.
    """
    if isinstance(message, AssistantMessage):
        return _decode_assistant(message)
    if isinstance(message, ResultMessage):
        return _decode_result(message)
    if isinstance(message, SystemMessage) and message.subtype == "init":
        return _decode_system_init(message.data)
    return None
