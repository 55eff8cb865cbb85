from pathlib import Path

import click

from prflow.cli.commands.options import current_branch_option, target_branch_option
from prflow.cli.helpers import (
    emit_result,
    exit_with_error,
    json_errors,
    require_context,
    require_repo_root,
    resolve_current_branch,
)
from prflow.workflow.submit_pr import submit_pr
from prflow.workflow.types import workflow_error


@click.command(name="submit-pr")
@target_branch_option
@current_branch_option
@click.option("--title", required=True, help="PR title")
@click.option("--body", default=None, help="PR body (markdown)")
@click.option(
    "--body-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read the PR body from a file",
)
@click.option("--pr-number", type=int, default=None, help="Update this PR instead of creating one")
@click.option("--keep-scratch", is_flag=True, help="Keep the scratch folder after submitting")
@click.pass_context
@json_errors
def submit_pr_cmd(
    ctx: click.Context,
    target_branch: str,
    current_branch: str | None,
    title: str,
    body: str | None,
    body_file: Path | None,
    pr_number: int | None,
    keep_scratch: bool,
) -> None:
    """Push the branch and create or update its pull request."""
    repo_root = require_repo_root(ctx)
    if body_file is not None and body is None:
        body = body_file.read_text(encoding="utf-8")
    elif body is None or body_file is not None:
        exit_with_error(
            workflow_error("invalid-input", "Pass exactly one of --body or --body-file")
        )
    current = resolve_current_branch(ctx, repo_root, current_branch)
    emit_result(
        submit_pr(
            require_context(ctx),
            repo_root,
            title=title,
            body=body,
            target_branch=target_branch,
            current_branch=current,
            pr_number=pr_number,
            delete_scratch=not keep_scratch,
        )
    )
