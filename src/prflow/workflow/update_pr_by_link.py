"""update-pr-by-link: prepare-pr for the branches of an existing PR."""

from pathlib import Path

from prflow.context import PrflowContext
from prflow.gateway.github.api import GitHubApiError
from prflow.gateway.github.types import parse_pr_url
from prflow.workflow.prepare_pr import prepare_pr
from prflow.workflow.types import UpdatePrByLinkResult, WorkflowError, workflow_error


def update_pr_by_link(
    ctx: PrflowContext, repo_root: Path, pr_url: str
) -> UpdatePrByLinkResult | WorkflowError:
    reference = parse_pr_url(pr_url)
    if reference is None:
        return workflow_error(
            "invalid-input", f"Invalid PR URL '{pr_url}'. Could not extract PR number."
        )

    try:
        details = ctx.github.view_pr(repo_root, reference.number)
    except (RuntimeError, GitHubApiError) as e:
        return workflow_error(
            "github-failed", f"Failed to fetch PR #{reference.number} details: {e}"
        )
    if details is None:
        return workflow_error(
            "pr-not-found",
            f"PR #{reference.number} not found",
            pr_number=str(reference.number),
        )

    prepared = prepare_pr(ctx, repo_root, details.base_branch, details.head_branch)
    if isinstance(prepared, WorkflowError):
        return prepared

    return UpdatePrByLinkResult(
        success=True,
        pr_number=reference.number,
        pr_url=details.url or pr_url,
        current_branch=details.head_branch,
        target_branch=details.base_branch,
        pr_template=prepared.pr_template,
        files_to_read=prepared.files_to_read,
        card_links=prepared.card_links,
        next_actions=prepared.next_actions,
        message=(
            f"Fetched PR #{reference.number}. Head branch: '{details.head_branch}', "
            f"base branch: '{details.base_branch}'. Ready to update."
        ),
    )
