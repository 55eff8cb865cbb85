import click

from prflow.cli.helpers import emit_result, json_errors, require_context, require_repo_root
from prflow.workflow.update_pr_by_link import update_pr_by_link


@click.command(name="update-pr-by-link")
@click.argument("pr_url")
@click.pass_context
@json_errors
def update_pr_by_link_cmd(ctx: click.Context, pr_url: str) -> None:
    """Prepare an update of the PR at PR_URL (its head and base branches)."""
    repo_root = require_repo_root(ctx)
    emit_result(update_pr_by_link(require_context(ctx), repo_root, pr_url))
