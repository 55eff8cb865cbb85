"""The prflow CLI end to end, building its own context from --cwd."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from prflow.cli.cli import cli
from tests.integration.conftest import git, log_messages

pytestmark = pytest.mark.integration


def test_get_commit_messages(work_repo: Path) -> None:
    result = CliRunner().invoke(
        cli, ["--cwd", str(work_repo), "get-commit-messages", "-t", "staging"]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["commits"] == ["feat: add form", "fix: validation"]


def test_squash_commits(work_repo: Path) -> None:
    result = CliRunner().invoke(
        cli, ["--cwd", str(work_repo), "squash-commits", "-t", "staging", "-m", "feat: login"]
    )

    assert result.exit_code == 0, result.output
    assert log_messages(work_repo, "staging..feat/login") == ["feat: login"]


def test_create_branch(work_repo: Path) -> None:
    result = CliRunner().invoke(
        cli, ["--cwd", str(work_repo), "create-branch", "fix", "Broken Save"]
    )

    assert result.exit_code == 0, result.output
    assert git(work_repo, "branch", "--show-current") == "fix/broken-save"
    assert git(work_repo, "rev-parse", "HEAD") == git(work_repo, "rev-parse", "origin/staging")


def test_outside_a_repository(tmp_path: Path) -> None:
    outside = tmp_path / "not-a-repo"
    outside.mkdir()

    result = CliRunner().invoke(cli, ["--cwd", str(outside), "detect-branches"])

    assert result.exit_code == 1
    assert json.loads(result.output)["error_type"] == "not-in-repo"


def test_invalid_config(work_repo: Path) -> None:
    (work_repo / ".prflow").mkdir()
    (work_repo / ".prflow" / "config.toml").write_text("remote = \n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--cwd", str(work_repo), "detect-branches"])

    assert result.exit_code == 1
    assert json.loads(result.output)["error_type"] == "invalid-config"
