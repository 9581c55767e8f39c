"""Console logging helpers for pr-review-agent.

Claude Code style colored logging for the operator-facing log.
"""

import json
from datetime import datetime
from typing import Any


# Global verbose setting (can be modified at runtime)
_verbose_enabled: bool = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable verbose output globally."""
    global _verbose_enabled
    _verbose_enabled = enabled


def is_verbose_enabled() -> bool:
    """Check if verbose output is currently enabled."""
    return _verbose_enabled


def truncate_text(text: str, max_length: int) -> str:
    """Truncate text to max_length, adding ellipsis if truncated.

    Respects global verbose setting. If verbose is enabled,
    returns the original text unchanged.
    """
    if _verbose_enabled:
        return text
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


class Colors:
    """ANSI color codes for terminal output (bright variants)."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    RED = "\033[91m"
    GRAY = "\033[90m"
    WHITE = "\033[97m"
    # Subdued style for secondary info
    MUTED = "\033[90m"


# Tools that show file path in quiet mode
FILE_TOOLS = frozenset({"Read", "Write", "Edit", "Glob", "Grep"})


def log(
    icon: str,
    message: str,
    color: str = Colors.RESET,
    dim: bool = False,
) -> None:
    """Claude Code style logging with a timestamp prefix."""
    style = Colors.MUTED if dim else ""
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(
        f"{Colors.GRAY}{timestamp}{Colors.RESET} {style}{color}{icon} {message}{Colors.RESET}"
    )


def _format_arguments(arguments: dict[str, Any] | None) -> str:
    """Format tool arguments as key: value lines for verbose mode.

    Nested values are pretty-printed as indented JSON.
    """
    if not arguments:
        return ""

    lines = []
    for key, value in arguments.items():
        if isinstance(value, bool):
            shown = str(value).lower()
        elif isinstance(value, str):
            shown = value
        elif isinstance(value, (dict, list)):
            formatted = json.dumps(value, indent=2, ensure_ascii=False)
            lines.append(f"{Colors.CYAN}{key}:{Colors.RESET}")
            for nested_line in formatted.split("\n"):
                lines.append(f"  {Colors.MUTED}{nested_line}{Colors.RESET}")
            continue
        else:
            shown = repr(value)
        lines.append(f"{Colors.CYAN}{key}:{Colors.RESET} {Colors.WHITE}{shown}{Colors.RESET}")

    return "\n    ".join(lines)


def _get_quiet_summary(tool_name: str, arguments: dict[str, Any] | None) -> str:
    """Single-line summary of a tool call for quiet mode."""
    if not arguments:
        return ""

    if tool_name in FILE_TOOLS:
        path = (
            arguments.get("file_path")
            or arguments.get("path")
            or arguments.get("pattern")
        )
        if path:
            return str(path)

    if tool_name == "Bash":
        command = arguments.get("description") or arguments.get("command")
        if command:
            return truncate_text(str(command), 100)

    keys = list(arguments.keys())[:3]
    preview = ", ".join(f"{k}=..." for k in keys)
    if len(arguments) > 3:
        preview += f", +{len(arguments) - 3} more"
    return f"{{{preview}}}"


def log_tool(tool_name: str, arguments: dict[str, Any] | None = None) -> None:
    """Log a tool invocation in Claude Code style.

    Quiet mode prints one line per call; verbose mode adds every argument.
    """
    icon = "⚙"

    if not is_verbose_enabled():
        summary = _get_quiet_summary(tool_name, arguments)
        suffix = f" {Colors.MUTED}{summary}{Colors.RESET}" if summary else ""
        print(f"  {Colors.CYAN}{icon} {tool_name}{Colors.RESET}{suffix}")
        return

    args_output = ""
    formatted_args = _format_arguments(arguments)
    if formatted_args:
        args_output = f"\n    {formatted_args}"
    print(f"  {Colors.CYAN}{icon} {tool_name}{Colors.RESET}{args_output}")


def log_agent_text(text: str) -> None:
    """Log agent text output, truncated unless verbose."""
    truncated = truncate_text(text, 100)
    print(f"  {Colors.MAGENTA}[assistant]{Colors.RESET} {Colors.MUTED}{truncated}{Colors.RESET}")
