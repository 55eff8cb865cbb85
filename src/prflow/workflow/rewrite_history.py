"""replace-commit-messages and squash-commits: input checks, then the engine."""

from collections.abc import Sequence
from pathlib import Path

from prflow.context import PrflowContext
from prflow.rewrite.types import ReplaceMessagesResult, RewriteError, SquashResult
from prflow.workflow.types import WorkflowError, workflow_error


def replace_commit_messages(
    ctx: PrflowContext, repo_root: Path, current: str, target: str, commits: Sequence[str]
) -> ReplaceMessagesResult | RewriteError | WorkflowError:
    """Replace each commit message of target..current (oldest first)."""
    empty = [str(index) for index, message in enumerate(commits) if not message.strip()]
    if empty:
        return workflow_error(
            "invalid-input",
            f"Commit messages must not be empty (positions: {', '.join(empty)})",
        )
    return ctx.engine.replace_commit_messages(repo_root, current, target, list(commits))


def squash_commits(
    ctx: PrflowContext, repo_root: Path, current: str, target: str, message: str
) -> SquashResult | RewriteError | WorkflowError:
    if not message.strip():
        return workflow_error("invalid-input", "Squash commit message must not be empty")
    return ctx.engine.squash_commits(repo_root, current, target, message)
