"""Environment configuration and loading for pr-review-agent.

Centralizes config paths and dotenv loading. Call load_user_env() from
bootstrap() before the CLI reads any required variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# User config directory (stores .env, runs, etc.)
USER_CONFIG_DIR = Path.home() / ".config" / "pr-review-agent"


# Audit log directory
# Can be overridden via REVIEW_AGENT_RUNS_DIR environment variable
def get_runs_dir() -> Path:
    """Get the runs directory, respecting REVIEW_AGENT_RUNS_DIR env var.

    This function evaluates the env var at call time, so it respects
    values loaded from .env via load_user_env().
    """
    return Path(os.environ.get("REVIEW_AGENT_RUNS_DIR", str(USER_CONFIG_DIR / "runs")))


def load_user_env() -> None:
    """Load environment from user config directory.

    Loads ${USER_CONFIG_DIR}/.env (typically ~/.config/pr-review-agent/.env).
    Values already present in the process environment win.
    """
    load_dotenv(dotenv_path=USER_CONFIG_DIR / ".env")


def build_agent_env(
    github_token: str, base: dict[str, str] | None = None
) -> dict[str, str]:
    """Build the execution environment handed to the agent runtime.

    The gh CLI reads GH_TOKEN, so the platform token is mirrored there.

    Args:
        github_token: Platform access token.
        base: Environment to inherit (defaults to os.environ).

    Returns:
        A new dict; the inherited mapping is not modified.
    """
    inherited = dict(os.environ if base is None else base)
    return {
        **inherited,
        "GITHUB_TOKEN": github_token,
        "GH_TOKEN": github_token,
    }
