"""Credential resolution for the CLI.

The GitHub token is optional: the compare endpoint works anonymously for
public repositories, at a much lower rate limit. Resolution order (stops at
first success):
  1. GITHUB_TOKEN environment variable
  2. `gh auth token` (GitHub CLI session)

The model provider key is mandatory and comes from the environment only.
"""

from __future__ import annotations

import logging
import os
import subprocess

import click

logger = logging.getLogger(__name__)

_KEY_ENV_VARS = {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no source is available. Never raises."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh missing or hung: run anonymously.
        pass

    return None


def require_model_key(config: dict) -> None:
    """Raise a UsageError when the configured provider has no API key."""
    model = config.get("model")
    env_var = _KEY_ENV_VARS.get(model)
    if env_var is None:
        raise click.UsageError(f"Unknown model provider {model!r}. Choose 'openai' or 'anthropic'.")
    if not config.get(f"{model}_api_key"):
        raise click.UsageError(f"{env_var} environment variable is not set.")
