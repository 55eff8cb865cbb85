"""get-commit-messages and get-commit-contents."""

from pathlib import Path

from prflow.changes import RefNotFound, generate_change_bundle
from prflow.context import PrflowContext
from prflow.gateway.git.abc import VcsCommandFailed, parse_log_messages, try_fetch
from prflow.refs import LOCAL_FIRST, REMOTE_FIRST
from prflow.workflow.types import (
    CommitContentsResult,
    CommitMessagesResult,
    WorkflowError,
    workflow_error,
)


def get_commit_messages(
    ctx: PrflowContext, repo_root: Path, current: str, target: str
) -> CommitMessagesResult | WorkflowError:
    """Full messages of target..current, oldest first.

    The base is looked up on the remote first, the head locally first.
    """
    remote = ctx.config.remote
    try_fetch(ctx.git, repo_root, remote, target, current)
    ref_range = ctx.resolver.resolve_range(
        repo_root, target, current, base_order=REMOTE_FIRST, head_order=LOCAL_FIRST
    )
    if ref_range is None:
        missing = RefNotFound(
            target if ctx.resolver.resolve(repo_root, current) is not None else current
        )
        return workflow_error(
            "ref-not-found",
            f"{missing}. Tried bases {remote}/{target}, {target} and heads "
            f"{current}, {remote}/{current}. Ensure the target branch exists locally "
            f"or on {remote}.",
            ref=missing.ref,
        )

    try:
        raw = ctx.git.log_range(
            repo_root,
            ref_range.base.name,
            ref_range.head.name,
            fmt="messages",
            base_location=ref_range.base.scope,
            head_location=ref_range.head.scope,
            remote=remote,
        )
    except VcsCommandFailed as e:
        return workflow_error(
            "vcs-command-failed", f"Failed to list commits in {ref_range.revision_range}: {e}"
        )
    return CommitMessagesResult(success=True, commits=list(reversed(parse_log_messages(raw))))


def get_commit_contents(
    ctx: PrflowContext, repo_root: Path, current: str, target: str
) -> CommitContentsResult | WorkflowError:
    """Write the change bundle for target..current and return its path."""
    try:
        bundle = generate_change_bundle(ctx.git, ctx.resolver, ctx.time, repo_root, target, current)
    except RefNotFound as e:
        return workflow_error("ref-not-found", str(e), ref=e.ref)
    except VcsCommandFailed as e:
        return workflow_error("vcs-command-failed", f"Failed to collect changes: {e}")
    return CommitContentsResult(
        success=True,
        changes_file=str(bundle.path),
        commit_count=len(bundle.commit_messages),
    )
