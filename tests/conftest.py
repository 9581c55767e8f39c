"""Pytest configuration for pr-review-agent tests."""

import os

import pytest

from pr_review_agent.logging import console


def pytest_configure(config: pytest.Config) -> None:
    """Configure test environment before collection.

    Redirects audit logs to /tmp to avoid polluting
    ~/.config/pr-review-agent/runs/.
    """
    os.environ["REVIEW_AGENT_RUNS_DIR"] = "/tmp/pr-review-agent-test-runs"


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Default unmarked tests to unit category."""
    for item in items:
        if any(marker in item.keywords for marker in ("unit", "integration")):
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _reset_verbose() -> None:
    """Keep the global verbose flag from leaking between tests."""
    console.set_verbose(False)


@pytest.fixture
def review_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every required environment variable and return them."""
    values = {
        "ANTHROPIC_API_KEY": "sk-test",
        "GITHUB_TOKEN": "ghp-test",
        "GITHUB_REPOSITORY": "acme/widgets",
        "PR_NUMBER": "42",
        "HEAD_SHA": "0123456789abcdef",
    }
    for name in (
        "REVIEW_AGENT_MODEL",
        "REVIEW_AGENT_MAX_TURNS",
        "REVIEW_AGENT_PERMISSION_POLICY",
        "REVIEW_AGENT_TIMEOUT_SECONDS",
        "REVIEW_AGENT_IDLE_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values
