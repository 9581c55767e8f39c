"""Console event sink for the session supervisor.

Implements ReviewEventSink using the console logging helpers.
"""

from typing import Any

from .logging.console import Colors, log, log_agent_text, log_tool


class ConsoleEventSink:
    """Event sink that prints live session progress to the terminal.

    Example:
        supervisor = SessionSupervisor(event_sink=ConsoleEventSink())
        outcome = await supervisor.run(request)
    """

    def on_session_started(self, repository: str, pr_number: str) -> None:
        log("●", f"Starting AI-powered review for {repository}#{pr_number}", Colors.MAGENTA)

    def on_system_init(
        self,
        model: str,
        working_directory: str,
        tool_names: list[str],
        mcp_server_names: list[str],
    ) -> None:
        log("◐", "Session initialized", Colors.CYAN)
        log("◐", f"model: {model}", Colors.MUTED)
        log("◐", f"working directory: {working_directory}", Colors.MUTED)
        log("◐", f"tools: {', '.join(tool_names)}", Colors.MUTED)
        log("◐", f"mcp servers: {', '.join(mcp_server_names) or 'none'}", Colors.MUTED)

    def on_agent_text(self, text: str) -> None:
        log_agent_text(text)

    def on_tool_use(self, tool_name: str, arguments: dict[str, Any] | None) -> None:
        log_tool(tool_name, arguments=arguments)

    def on_event_skipped(self, reason: str) -> None:
        log("⚠", f"Skipped malformed event: {reason}", Colors.YELLOW)

    def on_stream_fault(self, reason: str) -> None:
        log("✗", f"Session aborted: {reason}", Colors.RED)

    def on_warning(self, message: str) -> None:
        log("⚠", message, Colors.YELLOW)
