"""History-rewriting commands.

Both commands force-push the rewritten branch. A backup tag is left behind on
success and after a rollback; its name is part of the JSON result.

Exit Codes:
    0: Success (including the no-op case)
    1: Error, branch unchanged
    2: Rollback failed, manual recovery needed
"""

import json
from pathlib import Path

import click

from prflow.cli.commands.options import current_branch_option, target_branch_option
from prflow.cli.helpers import (
    emit_result,
    json_errors,
    require_context,
    require_repo_root,
    resolve_current_branch,
)
from prflow.workflow.rewrite_history import replace_commit_messages, squash_commits
from prflow.workflow.types import WorkflowError, workflow_error


def _read_commits_file(path: Path) -> list[str] | WorkflowError:
    """Load a JSON list of messages, or an object with a "commits" list."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        return workflow_error("invalid-input", f"{path} is not valid JSON: {e}")
    if isinstance(data, dict):
        data = data.get("commits")
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        return workflow_error(
            "invalid-input", f"{path} must contain a JSON list of commit messages"
        )
    return data


@click.command(name="replace-commit-messages")
@target_branch_option
@current_branch_option
@click.option(
    "--commit",
    "commits",
    multiple=True,
    help="New message for the next commit, oldest first (repeatable)",
)
@click.option(
    "--commits-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with the new messages, oldest first",
)
@click.pass_context
@json_errors
def replace_commit_messages_cmd(
    ctx: click.Context,
    target_branch: str,
    current_branch: str | None,
    commits: tuple[str, ...],
    commits_file: Path | None,
) -> None:
    """Replace the message of every commit in the range and force-push."""
    repo_root = require_repo_root(ctx)
    if bool(commits) == (commits_file is not None):
        emit_result(
            workflow_error("invalid-input", "Pass either --commit (repeated) or --commits-file")
        )

    messages: list[str] | WorkflowError = list(commits)
    if commits_file is not None:
        messages = _read_commits_file(commits_file)
    if isinstance(messages, WorkflowError):
        emit_result(messages)
        return

    current = resolve_current_branch(ctx, repo_root, current_branch)
    emit_result(
        replace_commit_messages(require_context(ctx), repo_root, current, target_branch, messages)
    )


@click.command(name="squash-commits")
@target_branch_option
@current_branch_option
@click.option("--message", "-m", required=True, help="Message of the squashed commit")
@click.pass_context
@json_errors
def squash_commits_cmd(
    ctx: click.Context, target_branch: str, current_branch: str | None, message: str
) -> None:
    """Squash every commit in the range into one and force-push."""
    repo_root = require_repo_root(ctx)
    current = resolve_current_branch(ctx, repo_root, current_branch)
    emit_result(squash_commits(require_context(ctx), repo_root, current, target_branch, message))
