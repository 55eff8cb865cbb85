import click

from prflow.cli.helpers import emit_result, json_errors, require_context, require_repo_root
from prflow.config import BRANCH_TYPES
from prflow.workflow.create_branch import create_branch


@click.command(name="create-branch")
@click.argument("branch_type", type=click.Choice(BRANCH_TYPES))
@click.argument("suffix")
@click.option("--base-branch", "-b", default=None, help="Branch to start from")
@click.pass_context
@json_errors
def create_branch_cmd(
    ctx: click.Context, branch_type: str, suffix: str, base_branch: str | None
) -> None:
    """Create and check out BRANCH_TYPE/SUFFIX.

    The base defaults to the branch configured for BRANCH_TYPE.
    """
    repo_root = require_repo_root(ctx)
    emit_result(
        create_branch(require_context(ctx), repo_root, branch_type, suffix, base_branch)
    )
