"""Session configuration for pr-review-agent.

Provides ReviewAgentConfig for reading the process environment and
build_session_request() for assembling the immutable SessionRequest that the
supervisor runs. Nothing downstream of this module reads os.environ.

Environment Variables:
    ANTHROPIC_API_KEY: Model provider credential (required)
    GITHUB_TOKEN: Platform access token, mirrored into GH_TOKEN (required)
    GITHUB_REPOSITORY: Target repository as owner/repo (required)
    PR_NUMBER: Pull request number (required)
    HEAD_SHA: Head commit of the pull request (required)
    REVIEW_AGENT_MODEL: Model identifier (default: claude-3-5-sonnet-latest)
    REVIEW_AGENT_MAX_TURNS: Turn bound for the session (default: 25)
    REVIEW_AGENT_PERMISSION_POLICY: auto-approve or interactive (default: auto-approve)
    REVIEW_AGENT_TIMEOUT_SECONDS: Wall-clock session bound (default: none)
    REVIEW_AGENT_IDLE_TIMEOUT_SECONDS: Max wait for any single event (default: none)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from pr_review_agent.prompts import (
    get_review_task_template,
    get_system_prompt_template,
    render_prompt,
)

DEFAULT_MODEL = "claude-3-5-sonnet-latest"
DEFAULT_MAX_TURNS = 25
DEFAULT_ALLOWED_TOOLS: tuple[str, ...] = ("Bash", "Read", "Grep", "Glob", "Write")

REQUIRED_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "PR_NUMBER",
    "HEAD_SHA",
)


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        message = "Configuration validation failed:\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        super().__init__(message)


class PermissionPolicy(Enum):
    """How the runtime treats tool permission prompts."""

    INTERACTIVE = "interactive"
    AUTO_APPROVE = "auto-approve"

    @property
    def sdk_mode(self) -> str:
        """Permission mode string understood by ClaudeAgentOptions."""
        if self is PermissionPolicy.INTERACTIVE:
            return "default"
        return "bypassPermissions"


@dataclass(frozen=True)
class SessionLimits:
    """Resource bounds for one review session.

    Attributes:
        max_turns: Turn bound enforced by the runtime. Must be positive.
        model: Model identifier passed to the runtime. Must be non-empty.
        permission_policy: Tool permission behavior.
        allowed_tools: Tools the agent may call.
        timeout_seconds: Wall-clock bound for the whole session (None disables).
        idle_timeout_seconds: Max wait for the next event (None disables).
    """

    max_turns: int = DEFAULT_MAX_TURNS
    model: str = DEFAULT_MODEL
    permission_policy: PermissionPolicy = PermissionPolicy.AUTO_APPROVE
    allowed_tools: tuple[str, ...] = DEFAULT_ALLOWED_TOOLS
    timeout_seconds: float | None = None
    idle_timeout_seconds: float | None = None

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty when valid)."""
        errors: list[str] = []
        if self.max_turns <= 0:
            errors.append(f"max_turns must be a positive integer, got: {self.max_turns}")
        if not self.model:
            errors.append("model must be a non-empty string")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            errors.append(
                f"timeout_seconds must be positive, got: {self.timeout_seconds}"
            )
        if self.idle_timeout_seconds is not None and self.idle_timeout_seconds <= 0:
            errors.append(
                f"idle_timeout_seconds must be positive, got: {self.idle_timeout_seconds}"
            )
        return errors


@dataclass(frozen=True)
class SessionRequest:
    """Immutable parameters of a single review session.

    Built once per run by build_session_request(). The supervisor depends
    only on this value, never on ambient process state.
    """

    repository_owner: str
    repository_name: str
    pr_number: str
    commit_sha: str
    instructions: str
    system_prompt: str
    limits: SessionLimits
    env: Mapping[str, str] = field(default_factory=dict)
    working_directory: str | None = None

    @property
    def repository(self) -> str:
        return f"{self.repository_owner}/{self.repository_name}"


def build_session_request(
    owner: str | None,
    repo: str | None,
    pr_number: str | int | None,
    commit_sha: str | None,
    limits: SessionLimits | None = None,
    *,
    env: Mapping[str, str] | None = None,
    working_directory: str | None = None,
    task_template: str | None = None,
    system_template: str | None = None,
) -> SessionRequest:
    """Assemble the SessionRequest for one review.

    Args:
        owner: Repository owner.
        repo: Repository name.
        pr_number: Pull request number.
        commit_sha: Head commit SHA the review is tagged to.
        limits: Session limits (defaults to SessionLimits()).
        env: Execution environment for the runtime, fixed before start.
        working_directory: Runtime working directory (None uses the cwd).
        task_template: Override for the initial task template.
        system_template: Override for the system prompt template.

    Returns:
        The SessionRequest.

    Raises:
        ConfigurationError: If an identity field is missing or empty, or if
            the limits are invalid.
    """
    limits = limits if limits is not None else SessionLimits()
    pr_text = "" if pr_number is None else str(pr_number)

    errors: list[str] = []
    for name, value in (
        ("repository owner", owner),
        ("repository name", repo),
        ("PR number", pr_text),
        ("commit SHA", commit_sha),
    ):
        if not value:
            errors.append(f"{name} is required")
    errors.extend(limits.validate())
    if errors or not owner or not repo or not commit_sha:
        raise ConfigurationError(errors)

    placeholders = {
        "owner": owner,
        "repo": repo,
        "pr_number": pr_text,
        "commit_sha": commit_sha,
    }
    instructions = render_prompt(
        task_template if task_template is not None else get_review_task_template(),
        **placeholders,
    )
    system_prompt = render_prompt(
        system_template if system_template is not None else get_system_prompt_template(),
        **placeholders,
    )

    return SessionRequest(
        repository_owner=owner,
        repository_name=repo,
        pr_number=pr_text,
        commit_sha=commit_sha,
        instructions=instructions,
        system_prompt=system_prompt,
        limits=limits,
        env=dict(env or {}),
        working_directory=working_directory,
    )


def _parse_optional_float(name: str, raw: str | None, errors: list[str]) -> float | None:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        errors.append(f"{name} must be a number, got: {raw!r}")
        return None


@dataclass(frozen=True)
class ReviewAgentConfig:
    """Process-level configuration read from the environment.

    Attributes:
        anthropic_api_key: Model provider credential.
        github_token: Platform access token.
        repository: Target repository as owner/repo.
        pr_number: Pull request number.
        head_sha: Head commit SHA.
        limits: Session limits.

    Example:
        config = ReviewAgentConfig.from_env()
        request = config.to_session_request(env=build_agent_env(config.github_token))
    """

    anthropic_api_key: str | None = None
    github_token: str | None = None
    repository: str | None = None
    pr_number: str | None = None
    head_sha: str | None = None
    limits: SessionLimits = field(default_factory=SessionLimits)

    @property
    def owner(self) -> str | None:
        if not self.repository or "/" not in self.repository:
            return None
        return self.repository.split("/", 1)[0] or None

    @property
    def repo(self) -> str | None:
        if not self.repository or "/" not in self.repository:
            return None
        return self.repository.split("/", 1)[1] or None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        validate: bool = True,
    ) -> ReviewAgentConfig:
        """Create ReviewAgentConfig from environment variables.

        Args:
            environ: Mapping to read (defaults to os.environ).
            validate: If True (default), raise ConfigurationError on any errors.

        Raises:
            ConfigurationError: If validate=True and configuration is invalid.
        """
        env = os.environ if environ is None else environ
        errors: list[str] = []

        max_turns = DEFAULT_MAX_TURNS
        raw_turns = env.get("REVIEW_AGENT_MAX_TURNS")
        if raw_turns:
            try:
                max_turns = int(raw_turns)
            except ValueError:
                errors.append(
                    f"REVIEW_AGENT_MAX_TURNS must be an integer, got: {raw_turns!r}"
                )

        policy = PermissionPolicy.AUTO_APPROVE
        raw_policy = env.get("REVIEW_AGENT_PERMISSION_POLICY")
        if raw_policy:
            try:
                policy = PermissionPolicy(raw_policy)
            except ValueError:
                valid = ", ".join(p.value for p in PermissionPolicy)
                errors.append(
                    f"REVIEW_AGENT_PERMISSION_POLICY must be one of: {valid}; "
                    f"got: {raw_policy!r}"
                )

        limits = SessionLimits(
            max_turns=max_turns,
            model=env.get("REVIEW_AGENT_MODEL") or DEFAULT_MODEL,
            permission_policy=policy,
            timeout_seconds=_parse_optional_float(
                "REVIEW_AGENT_TIMEOUT_SECONDS",
                env.get("REVIEW_AGENT_TIMEOUT_SECONDS"),
                errors,
            ),
            idle_timeout_seconds=_parse_optional_float(
                "REVIEW_AGENT_IDLE_TIMEOUT_SECONDS",
                env.get("REVIEW_AGENT_IDLE_TIMEOUT_SECONDS"),
                errors,
            ),
        )

        # Treat empty strings as missing
        config = cls(
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            github_token=env.get("GITHUB_TOKEN") or None,
            repository=env.get("GITHUB_REPOSITORY") or None,
            pr_number=env.get("PR_NUMBER") or None,
            head_sha=env.get("HEAD_SHA") or None,
            limits=limits,
        )

        if validate:
            errors.extend(config.validate())
            if errors:
                raise ConfigurationError(errors)

        return config

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors: list[str] = []
        for name, value in (
            ("ANTHROPIC_API_KEY", self.anthropic_api_key),
            ("GITHUB_TOKEN", self.github_token),
            ("GITHUB_REPOSITORY", self.repository),
            ("PR_NUMBER", self.pr_number),
            ("HEAD_SHA", self.head_sha),
        ):
            if not value:
                errors.append(f"{name} environment variable is required")
        if self.repository and (self.owner is None or self.repo is None):
            errors.append(
                f"GITHUB_REPOSITORY must look like owner/repo, got: {self.repository!r}"
            )
        errors.extend(self.limits.validate())
        return errors

    def to_session_request(
        self,
        *,
        env: Mapping[str, str] | None = None,
        working_directory: str | None = None,
    ) -> SessionRequest:
        """Build the SessionRequest for this configuration."""
        return build_session_request(
            self.owner,
            self.repo,
            self.pr_number,
            self.head_sha,
            self.limits,
            env=env,
            working_directory=working_directory,
        )
