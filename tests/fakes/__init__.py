"""In-memory fakes for testing.

Fakes implement the real protocol contracts (SDKClientProtocol,
SDKClientFactory, ReviewEventSink) and use real claude_agent_sdk message
types so isinstance checks in the decoder behave as in production.

Usage:
    from tests.fakes import FakeSDKClient, FakeSDKClientFactory, make_result_message

    client = FakeSDKClient(messages=[make_result_message()])
    supervisor = SessionSupervisor(sdk_client_factory=FakeSDKClientFactory(client))
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from claude_agent_sdk import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolUseBlock,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from pr_review_agent.pipeline.session_supervisor import SDKClientProtocol


def make_system_init(
    model: str = "m1",
    cwd: str = "/workspace",
    tools: list[str] | None = None,
    mcp_servers: list[dict[str, str]] | None = None,
) -> SystemMessage:
    return SystemMessage(
        subtype="init",
        data={
            "type": "system",
            "subtype": "init",
            "model": model,
            "cwd": cwd,
            "tools": tools if tools is not None else ["Bash", "Read"],
            "mcp_servers": mcp_servers if mcp_servers is not None else [],
        },
    )


def make_assistant(*blocks: Any) -> AssistantMessage:
    return AssistantMessage(content=list(blocks), model="test-model")


def make_text(text: str) -> TextBlock:
    return TextBlock(text=text)


def make_tool_use(name: str, tool_input: dict[str, Any], tool_id: str = "tool-1") -> ToolUseBlock:
    return ToolUseBlock(id=tool_id, name=name, input=tool_input)


def make_result_message(
    subtype: str = "success",
    result: str | None = "Approved, no issues",
    duration_ms: int = 4200,
    num_turns: int = 3,
    total_cost_usd: float | None = 0.12,
    is_error: bool = False,
) -> ResultMessage:
    """Create a ResultMessage with the given fields."""
    return ResultMessage(
        subtype=subtype,
        duration_ms=duration_ms,
        duration_api_ms=duration_ms // 2,
        is_error=is_error,
        num_turns=num_turns,
        session_id="test-session-123",
        total_cost_usd=total_cost_usd,
        result=result,
    )


class FakeSDKClient:
    """Fake SDK client that replays a fixed message list.

    Args:
        messages: Messages yielded by receive_response, in order.
        enter_error: Raised from __aenter__ (simulates connect failure).
        query_error: Raised from query().
        stream_error: Raised after all messages are yielded (transport break).
        exit_error: Raised from __aexit__ (simulates a failing disconnect).
    """

    def __init__(
        self,
        messages: list[Any] | None = None,
        *,
        enter_error: Exception | None = None,
        query_error: Exception | None = None,
        stream_error: Exception | None = None,
        exit_error: Exception | None = None,
    ):
        self.messages = messages or []
        self.enter_error = enter_error
        self.query_error = query_error
        self.stream_error = stream_error
        self.exit_error = exit_error
        self.queries: list[str] = []
        self.entered = False
        self.exited = False
        self.yielded = 0

    async def __aenter__(self) -> Self:
        if self.enter_error is not None:
            raise self.enter_error
        self.entered = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.exited = True
        if self.exit_error is not None:
            raise self.exit_error

    async def query(self, prompt: str, session_id: str = "default") -> None:
        if self.query_error is not None:
            raise self.query_error
        self.queries.append(prompt)

    async def receive_response(self) -> AsyncIterator[Any]:
        for msg in self.messages:
            self.yielded += 1
            yield msg
        if self.stream_error is not None:
            raise self.stream_error


class HangingSDKClient(FakeSDKClient):
    """Fake SDK client that yields its messages and then never finishes."""

    async def receive_response(self) -> AsyncIterator[Any]:
        for msg in self.messages:
            self.yielded += 1
            yield msg
        while True:
            await asyncio.sleep(3600)


class FakeSDKClientFactory:
    """Factory for creating fake SDK clients in tests."""

    def __init__(self, client: FakeSDKClient, create_error: Exception | None = None):
        self.client = client
        self.create_error = create_error
        self.create_calls: list[Any] = []

    def create(self, options: Any) -> SDKClientProtocol:
        self.create_calls.append(options)
        if self.create_error is not None:
            raise self.create_error
        return self.client


@dataclass
class FakeEventSink:
    """Event sink that records every call as (method, args)."""

    events: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    def _record(self, name: str, *args: Any) -> None:
        self.events.append((name, args))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def on_session_started(self, repository: str, pr_number: str) -> None:
        self._record("on_session_started", repository, pr_number)

    def on_system_init(
        self,
        model: str,
        working_directory: str,
        tool_names: list[str],
        mcp_server_names: list[str],
    ) -> None:
        self._record("on_system_init", model, working_directory, tool_names, mcp_server_names)

    def on_agent_text(self, text: str) -> None:
        self._record("on_agent_text", text)

    def on_tool_use(self, tool_name: str, arguments: dict[str, Any] | None) -> None:
        self._record("on_tool_use", tool_name, arguments)

    def on_event_skipped(self, reason: str) -> None:
        self._record("on_event_skipped", reason)

    def on_stream_fault(self, reason: str) -> None:
        self._record("on_stream_fault", reason)

    def on_warning(self, message: str) -> None:
        self._record("on_warning", message)
