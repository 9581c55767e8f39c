"""Tools package: environment loading and agent environment helpers."""

from pr_review_agent.tools.env import (
    USER_CONFIG_DIR,
    build_agent_env,
    get_runs_dir,
    load_user_env,
)

__all__ = [
    "USER_CONFIG_DIR",
    "build_agent_env",
    "get_runs_dir",
    "load_user_env",
]
