#!/usr/bin/env python3
"""
pr-review-agent: autonomous pull request review with Claude Agent SDK.

This module is a thin shim that exposes the CLI app from pr_review_agent.cli.

Usage:
    pr-review-agent review [OPTIONS] [REPO_PATH]
    pr-review-agent logs [OPTIONS]
    pr-review-agent status
"""

from .cli import app, bootstrap

# Load ~/.config/pr-review-agent/.env before any command reads configuration
bootstrap()

if __name__ == "__main__":
    app()
