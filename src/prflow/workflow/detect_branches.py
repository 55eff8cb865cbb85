"""detect-branches: current branch, suggested PR target, card link."""

import logging
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.card_links import infer_card_link
from prflow.context import PrflowContext
from prflow.naming import is_temp_branch
from prflow.workflow.types import DetectBranchesResult, WorkflowError, numbered, workflow_error

logger = logging.getLogger(__name__)


def suggest_target_branch(ctx: PrflowContext, repo_root: Path, current: str) -> str | None:
    """Local branch that current most recently diverged from.

    Distance is the number of commits from the merge base to current; the
    branch with the smallest positive distance wins (first one on ties).
    Branches whose distance cannot be computed are skipped.
    """
    closest: str | None = None
    min_distance: int | None = None
    for branch in ctx.git.list_local_branches(repo_root):
        if branch == current or is_temp_branch(branch):
            continue
        merge_base = best_effort(
            lambda branch=branch: ctx.git.merge_base(repo_root, current, branch),
            description=f"find merge base of {current} and {branch}",
        )
        if merge_base is None:
            continue
        distance = best_effort(
            lambda merge_base=merge_base: ctx.git.rev_list_count_between(
                repo_root, merge_base, current
            ),
            description=f"count commits between {merge_base} and {current}",
        )
        if distance is None or distance <= 0:
            continue
        if min_distance is None or distance < min_distance:
            min_distance = distance
            closest = branch
    logger.debug("closest branch to %s: %s (distance %s)", current, closest, min_distance)
    return closest


def detect_branches(
    ctx: PrflowContext, repo_root: Path, target_branch: str | None = None
) -> DetectBranchesResult | WorkflowError:
    current = ctx.git.get_current_branch(repo_root)
    if current is None:
        return workflow_error(
            "detached-head",
            "HEAD is detached; check out the branch you want to open a PR from.",
        )

    if target_branch:
        suggested = target_branch
    else:
        closest = best_effort(
            lambda: suggest_target_branch(ctx, repo_root, current),
            description="suggest a target branch",
        )
        suggested = closest or ctx.config.branch_schema.homologation

    actions: list[str] = []
    if not target_branch:
        actions.append(
            "Target branch was not provided! Ask user to confirm target branch "
            "before doing anything else"
        )
        actions.append(f"Suggest target branch: '{suggested}', but wait for user confirmation")
    actions.append("Run prepare-pr")

    return DetectBranchesResult(
        success=True,
        current_branch=current,
        suggested_target=suggested,
        inferred_card_link=infer_card_link(current, ctx.config),
        next_actions=numbered(actions),
        message=f"Detected current branch: '{current}'. Suggested target branch: '{suggested}'.",
    )
