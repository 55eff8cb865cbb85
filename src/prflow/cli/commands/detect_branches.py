import click

from prflow.cli.helpers import emit_result, json_errors, require_context, require_repo_root
from prflow.workflow.detect_branches import detect_branches


@click.command(name="detect-branches")
@click.option("--target-branch", "-t", default=None, help="Target branch, if already known")
@click.pass_context
@json_errors
def detect_branches_cmd(ctx: click.Context, target_branch: str | None) -> None:
    """Report the current branch and suggest a target branch for its PR."""
    repo_root = require_repo_root(ctx)
    emit_result(detect_branches(require_context(ctx), repo_root, target_branch))
