"""submit-pr: push the branch and create or update its pull request."""

import logging
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.context import PrflowContext
from prflow.gateway.git.abc import VcsCommandFailed
from prflow.gateway.github.api import GitHubApiError
from prflow.gateway.github.types import extract_pr_url
from prflow.scratch import clear_repo_scratch, write_scratch_file
from prflow.workflow.types import SubmitPrResult, WorkflowError, numbered, workflow_error

logger = logging.getLogger(__name__)

PUSH_HELP = """\
Please check:
1. You have write permissions to the remote repository
2. The remote '{remote}' is correctly configured (run: git remote -v)
3. There are no conflicts with the remote branch
4. Your network connection is stable"""


def _push_branch(ctx: PrflowContext, repo_root: Path, branch: str) -> WorkflowError | None:
    remote = ctx.config.remote
    try:
        ctx.git.push(repo_root, remote, branch)
    except VcsCommandFailed as first_error:
        logger.debug("push of %s failed, retrying with --set-upstream: %s", branch, first_error)
        try:
            ctx.git.push(repo_root, remote, branch, set_upstream=True)
        except VcsCommandFailed as e:
            return workflow_error(
                "push-failed",
                f"Failed to push branch '{branch}' to '{remote}'.\n\nError: {e}\n\n"
                + PUSH_HELP.format(remote=remote),
                branch=branch,
                stderr=e.stderr,
            )
    return None


def submit_pr(
    ctx: PrflowContext,
    repo_root: Path,
    *,
    title: str,
    body: str,
    target_branch: str,
    current_branch: str,
    pr_number: int | None = None,
    delete_scratch: bool = True,
) -> SubmitPrResult | WorkflowError:
    """Push current_branch, then edit PR pr_number or create a new PR.

    The branch is only pushed when it exists locally; a remote-only branch is
    already where the PR service needs it.
    """
    missing = [
        name
        for name, value in (
            ("title", title),
            ("body", body),
            ("target_branch", target_branch),
            ("current_branch", current_branch),
        )
        if not value.strip()
    ]
    if missing:
        return workflow_error(
            "invalid-input", f"Missing required parameters: {', '.join(missing)}"
        )

    if ctx.resolver.ref_exists(repo_root, current_branch, "local"):
        push_error = _push_branch(ctx, repo_root, current_branch)
        if push_error is not None:
            return push_error

    body_file = write_scratch_file(
        repo_root, f"pr-body-{pr_number or 'new'}-{ctx.time.epoch_millis()}.md", body
    )

    pr_url: str | None
    try:
        if pr_number is not None:
            details = ctx.github.view_pr(repo_root, pr_number)
            if details is None:
                return workflow_error(
                    "pr-not-found", f"PR #{pr_number} not found", pr_number=str(pr_number)
                )
            pr_url = details.url or None
            ctx.github.edit_pr(repo_root, pr_number, title, body_file)
        else:
            output = ctx.github.create_pr(
                repo_root, target_branch, current_branch, title, body_file
            )
            pr_url = extract_pr_url(output)
    except (RuntimeError, GitHubApiError) as e:
        return workflow_error(
            "github-failed",
            f"Failed to submit PR from '{current_branch}' into '{target_branch}': {e}",
            body_file=str(body_file),
        )

    if delete_scratch:
        best_effort(lambda: clear_repo_scratch(repo_root), description="clear scratch folder")

    actions = ["Print the PR URL, if returned, to the user"]
    if pr_url is not None:
        actions.append("If a card tool is available, comment the PR link on the card")

    verb = "Updated" if pr_number is not None else "Created"
    return SubmitPrResult(
        success=True,
        pr_url=pr_url,
        pr_created=pr_number is None,
        next_actions=numbered(actions),
        message=f"{verb} PR.{f' PR URL: {pr_url}' if pr_url else ''}",
    )
