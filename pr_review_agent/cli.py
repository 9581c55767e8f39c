#!/usr/bin/env python3
"""
pr-review-agent CLI: run an autonomous review agent against one pull request.

Usage:
    pr-review-agent review [OPTIONS] [REPO_PATH]
    pr-review-agent logs [OPTIONS]
"""

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from typing import Annotated, Never

import typer
from tabulate import tabulate

from .config import ConfigurationError, PermissionPolicy, ReviewAgentConfig
from .event_sink_console import ConsoleEventSink
from .logging.console import Colors, log, set_verbose
from .logging.jsonl import AuditLogWriter, list_audit_logs
from .pipeline.outcome_reporter import EXIT_FAILURE, OutcomeReporter
from .pipeline.session_supervisor import (
    ClaudeSDKClientFactory,
    RuntimeStartError,
    SessionSupervisor,
)
from .tools.env import USER_CONFIG_DIR, build_agent_env, get_runs_dir, load_user_env

# Bootstrap state: tracks whether bootstrap() has been called
_bootstrapped = False

# Default number of audit logs shown by `logs`
_DEFAULT_LIMIT = 20


def bootstrap() -> None:
    """Initialize environment.

    Must be called before any command reads configuration. Idempotent.

    Side effects:
        - Loads environment variables from ~/.config/pr-review-agent/.env
    """
    global _bootstrapped

    if _bootstrapped:
        return

    load_user_env()

    _bootstrapped = True


app = typer.Typer(
    name="pr-review-agent",
    help="Autonomous pull request review with Claude Agent SDK",
    add_completion=False,
)


@app.command()
def review(
    repo_path: Annotated[
        Path,
        typer.Argument(help="Checked-out repository the agent works in"),
    ] = Path("."),
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model identifier (overrides REVIEW_AGENT_MODEL)"),
    ] = None,
    max_turns: Annotated[
        int | None,
        typer.Option(
            "--max-turns", help="Turn limit for the session (overrides REVIEW_AGENT_MAX_TURNS)"
        ),
    ] = None,
    permission_policy: Annotated[
        PermissionPolicy | None,
        typer.Option(
            "--permission-policy",
            help="Tool permission behavior (default: auto-approve)",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout", "-t", help="Wall-clock session limit in seconds (default: none)"
        ),
    ] = None,
    idle_timeout: Annotated[
        float | None,
        typer.Option(
            "--idle-timeout",
            help="Abort if no event arrives for this many seconds (default: none)",
        ),
    ] = None,
    require_review: Annotated[
        bool,
        typer.Option(
            "--require-review",
            help="Fail when the agent finished without submitting a review",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose/--quiet",
            "-v/-q",
            help="Verbose output shows full tool arguments; quiet mode shows single line per tool call",
        ),
    ] = False,
) -> Never:
    """Review one pull request and exit with the session status."""
    bootstrap()
    set_verbose(verbose)

    repo_path = repo_path.resolve()
    if not repo_path.exists():
        log("✗", f"Repository not found: {repo_path}", Colors.RED)
        raise typer.Exit(EXIT_FAILURE)

    try:
        config = ReviewAgentConfig.from_env()
        overrides: dict[str, object] = {}
        if model is not None:
            overrides["model"] = model
        if max_turns is not None:
            overrides["max_turns"] = max_turns
        if permission_policy is not None:
            overrides["permission_policy"] = permission_policy
        if timeout is not None:
            overrides["timeout_seconds"] = timeout
        if idle_timeout is not None:
            overrides["idle_timeout_seconds"] = idle_timeout
        if overrides:
            config = dataclasses.replace(
                config, limits=dataclasses.replace(config.limits, **overrides)
            )
        if config.github_token is None:
            raise ConfigurationError(["GITHUB_TOKEN environment variable is required"])
        request = config.to_session_request(
            env=build_agent_env(config.github_token),
            working_directory=str(repo_path),
        )
    except ConfigurationError as e:
        log("✗", "Configuration error", Colors.RED)
        for error in e.errors:
            log(" ", error, Colors.RED)
        raise typer.Exit(EXIT_FAILURE) from e

    supervisor = SessionSupervisor(
        sdk_client_factory=ClaudeSDKClientFactory(),
        event_sink=ConsoleEventSink(),
    )
    try:
        outcome = asyncio.run(supervisor.run(request))
    except RuntimeStartError as e:
        log("✗", f"Fatal error: {e}", Colors.RED)
        raise typer.Exit(EXIT_FAILURE) from e

    reporter = OutcomeReporter(
        request=request,
        audit_writer=AuditLogWriter(get_runs_dir()),
        require_review=require_review,
    )
    raise typer.Exit(reporter.report(outcome))


@app.command()
def logs(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of sessions to show"),
    ] = _DEFAULT_LIMIT,
) -> None:
    """List recent review sessions from the audit logs."""
    bootstrap()
    summaries = list_audit_logs(get_runs_dir(), limit=limit)
    if not summaries:
        log("○", "No review sessions found", Colors.GRAY)
        return

    headers = ["Timestamp", "Repository", "PR", "Verdict", "Turns", "Cost", "Note"]
    rows = [
        [
            s.timestamp,
            s.repository,
            s.pr_number,
            s.verdict,
            s.num_turns if s.num_turns is not None else "-",
            f"${s.cost_usd:.4f}" if s.cost_usd is not None else "-",
            s.note or "",
        ]
        for s in summaries
    ]
    print(tabulate(rows, headers=headers, tablefmt="simple"))


@app.command()
def status() -> None:
    """Show where configuration and audit logs are read from."""
    bootstrap()
    log("◐", f"config: {USER_CONFIG_DIR / '.env'}", Colors.MUTED)
    log("◐", f"runs: {get_runs_dir()}", Colors.MUTED)
    try:
        config = ReviewAgentConfig.from_env()
    except ConfigurationError as e:
        for error in e.errors:
            log("⚠", error, Colors.YELLOW)
        return
    log("✓", f"ready to review {config.repository}#{config.pr_number}", Colors.GREEN)
