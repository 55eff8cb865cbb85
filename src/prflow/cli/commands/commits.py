import click

from prflow.cli.commands.options import current_branch_option, target_branch_option
from prflow.cli.helpers import (
    emit_result,
    json_errors,
    require_context,
    require_repo_root,
    resolve_current_branch,
)
from prflow.workflow.commits import get_commit_contents, get_commit_messages


@click.command(name="get-commit-messages")
@target_branch_option
@current_branch_option
@click.pass_context
@json_errors
def get_commit_messages_cmd(
    ctx: click.Context, target_branch: str, current_branch: str | None
) -> None:
    """Print the full message of every commit in the range, oldest first."""
    repo_root = require_repo_root(ctx)
    current = resolve_current_branch(ctx, repo_root, current_branch)
    emit_result(get_commit_messages(require_context(ctx), repo_root, current, target_branch))


@click.command(name="get-commit-contents")
@target_branch_option
@current_branch_option
@click.pass_context
@json_errors
def get_commit_contents_cmd(
    ctx: click.Context, target_branch: str, current_branch: str | None
) -> None:
    """Write the change bundle for the range and print its path."""
    repo_root = require_repo_root(ctx)
    current = resolve_current_branch(ctx, repo_root, current_branch)
    emit_result(get_commit_contents(require_context(ctx), repo_root, current, target_branch))
