"""Event sink protocol for the session supervisor.

Defines ReviewEventSink to decouple session orchestration from presentation.
The supervisor emits semantic events through the sink; ConsoleEventSink
(event_sink_console.py) prints them and NullEventSink discards them.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ReviewEventSink(Protocol):
    """Protocol for receiving live session events.

    All methods are synchronous and should be non-blocking.
    """

    def on_session_started(self, repository: str, pr_number: str) -> None:
        """Called before the runtime session is created.

        Args:
            repository: Repository as owner/repo.
            pr_number: Pull request number.
        """
        ...

    def on_system_init(
        self,
        model: str,
        working_directory: str,
        tool_names: list[str],
        mcp_server_names: list[str],
    ) -> None:
        """Called when the runtime reports its initialization."""
        ...

    def on_agent_text(self, text: str) -> None:
        """Called for each text segment of an assistant turn."""
        ...

    def on_tool_use(self, tool_name: str, arguments: dict[str, Any] | None) -> None:
        """Called for each tool invocation of an assistant turn."""
        ...

    def on_event_skipped(self, reason: str) -> None:
        """Called when a malformed event is skipped."""
        ...

    def on_stream_fault(self, reason: str) -> None:
        """Called when the session ends without a terminal result."""
        ...

    def on_warning(self, message: str) -> None:
        """Called for non-fatal conditions worth surfacing."""
        ...


class NullEventSink:
    """No-op event sink for testing.

    Example:
        supervisor = SessionSupervisor(event_sink=NullEventSink())
        await supervisor.run(request)  # No console output
    """

    def on_session_started(self, repository: str, pr_number: str) -> None:
        pass

    def on_system_init(
        self,
        model: str,
        working_directory: str,
        tool_names: list[str],
        mcp_server_names: list[str],
    ) -> None:
        pass

    def on_agent_text(self, text: str) -> None:
        pass

    def on_tool_use(self, tool_name: str, arguments: dict[str, Any] | None) -> None:
        pass

    def on_event_skipped(self, reason: str) -> None:
        pass

    def on_stream_fault(self, reason: str) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass
