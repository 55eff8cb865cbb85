"""Select the PR gateway variant from configuration."""

import os
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.config import PrflowConfig
from prflow.gateway.git.abc import Git
from prflow.gateway.github.abc import PrGateway
from prflow.gateway.github.api import ApiPrGateway
from prflow.gateway.github.cli import CliPrGateway
from prflow.gateway.github.types import parse_remote_url
from prflow.subprocess_utils import run_subprocess_with_context

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def fetch_github_token() -> str | None:
    """Token from the environment, else from `gh auth token`, else None."""
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    result = best_effort(
        lambda: run_subprocess_with_context(
            ["gh", "auth", "token"], operation_context="read gh auth token"
        ),
        description="read token from gh",
    )
    if result is None:
        return None
    return result.stdout.strip() or None


def create_pr_gateway(config: PrflowConfig, git: Git, repo_root: Path) -> PrGateway:
    if config.github_backend == "cli":
        return CliPrGateway()
    remote_url = best_effort(
        lambda: git.get_remote_url(repo_root, config.remote),
        description=f"read url of remote '{config.remote}'",
    )
    return ApiPrGateway(
        token=fetch_github_token(),
        repo_id=parse_remote_url(remote_url) if remote_url is not None else None,
        api_url=config.github_api_url,
    )
