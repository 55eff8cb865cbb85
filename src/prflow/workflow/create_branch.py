"""create-branch: `<type>/<suffix>` cut from the base branch of its type."""

import logging
from pathlib import Path

from prflow.config import BRANCH_TYPES
from prflow.context import PrflowContext
from prflow.gateway.git.abc import VcsCommandFailed, try_fetch
from prflow.naming import branch_name_for
from prflow.refs import REMOTE_FIRST
from prflow.workflow.types import CreateBranchResult, WorkflowError, workflow_error

logger = logging.getLogger(__name__)


def create_branch(
    ctx: PrflowContext,
    repo_root: Path,
    branch_type: str,
    suffix: str,
    base_branch: str | None = None,
) -> CreateBranchResult | WorkflowError:
    """Create and check out a new branch.

    The base defaults to the branch the type is cut from (branch mapping
    origin). The remote copy of the base is preferred over the local one.
    """
    if branch_type not in BRANCH_TYPES:
        return workflow_error(
            "invalid-input",
            f"Unknown branch type '{branch_type}' (expected one of: {', '.join(BRANCH_TYPES)})",
        )
    try:
        branch_name = branch_name_for(branch_type, suffix)
    except ValueError as e:
        return workflow_error("invalid-input", str(e))

    base = base_branch or ctx.config.base_branch_for(branch_type)

    resolver = ctx.resolver
    if resolver.ref_exists(repo_root, branch_name, "local"):
        return workflow_error(
            "branch-exists", f"Branch '{branch_name}' already exists", branch=branch_name
        )

    try_fetch(ctx.git, repo_root, resolver.remote, base)
    start = resolver.resolve(repo_root, base, REMOTE_FIRST)
    if start is None:
        return workflow_error(
            "ref-not-found",
            f"Base branch '{base}' not found locally or on '{resolver.remote}'",
            ref=base,
        )

    try:
        ctx.git.checkout_branch(repo_root, branch_name, new=True, start_point=start.qualified)
    except VcsCommandFailed as e:
        return workflow_error(
            "vcs-command-failed", f"Failed to create branch '{branch_name}': {e}"
        )

    logger.debug("created %s from %s", branch_name, start.qualified)
    return CreateBranchResult(
        success=True,
        branch_name=branch_name,
        base_branch=base,
        message=f"Branch '{branch_name}' created from '{start.qualified}'.",
    )
