"""Prompt template loading and rendering.

Templates are markdown files under pr_review_agent/prompts/ and use
str.format placeholders: {owner}, {repo}, {pr_number}, {commit_sha}.
"""

from __future__ import annotations

import functools
from pathlib import Path


# Prompt directory relative to this module
_PROMPT_DIR = Path(__file__).parent / "prompts"

# File path constants
SYSTEM_PROMPT_FILE = _PROMPT_DIR / "system_prompt.md"
REVIEW_TASK_FILE = _PROMPT_DIR / "review_task.md"


@functools.cache
def get_system_prompt_template() -> str:
    """Load reviewer system prompt (cached on first use)."""
    return SYSTEM_PROMPT_FILE.read_text()


@functools.cache
def get_review_task_template() -> str:
    """Load the initial review task prompt (cached on first use)."""
    return REVIEW_TASK_FILE.read_text()


def render_prompt(
    template: str, *, owner: str, repo: str, pr_number: str, commit_sha: str
) -> str:
    """Fill the identity placeholders of a prompt template."""
    return template.format(
        owner=owner,
        repo=repo,
        pr_number=pr_number,
        commit_sha=commit_sha,
    ).strip()
