import click

from prflow.cli.commands.options import current_branch_option, target_branch_option
from prflow.cli.helpers import (
    emit_result,
    json_errors,
    require_context,
    require_repo_root,
    resolve_current_branch,
)
from prflow.workflow.prepare_pr import prepare_pr


@click.command(name="prepare-pr")
@target_branch_option
@current_branch_option
@click.option("--card-link", default=None, help="Card URL to reference in the PR")
@click.pass_context
@json_errors
def prepare_pr_cmd(
    ctx: click.Context, target_branch: str, current_branch: str | None, card_link: str | None
) -> None:
    """Collect everything needed to write the PR title and body.

    Writes the change bundle (commits, diff summary, code diff) to the
    repository scratch folder and lists the files to read.
    """
    repo_root = require_repo_root(ctx)
    current = resolve_current_branch(ctx, repo_root, current_branch)
    emit_result(prepare_pr(require_context(ctx), repo_root, target_branch, current, card_link))
