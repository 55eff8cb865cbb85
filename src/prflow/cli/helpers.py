"""Shared plumbing for prflow commands: context access and JSON results."""

import functools
import json
from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from prflow.context import PrflowContext
from prflow.gateway.git.abc import VcsCommandFailed
from prflow.output import machine_output
from prflow.workflow.types import WorkflowError, workflow_error

F = TypeVar("F", bound=Callable[..., Any])

# Exit code for a failed rollback: the branch may be in an intermediate state.
RESTORE_FAILED_EXIT_CODE = 2


def emit_result(result: Any) -> None:
    """Print a result dataclass as JSON and exit non-zero if it is an error."""
    if not result.success:
        exit_with_error(result)
    machine_output(json.dumps(asdict(result), indent=2))


def exit_with_error(error: Any) -> NoReturn:
    """Print an error dataclass as JSON and exit (2 for restore-failed, else 1)."""
    machine_output(json.dumps(asdict(error), indent=2))
    if error.error_type == "restore-failed":
        raise SystemExit(RESTORE_FAILED_EXIT_CODE)
    raise SystemExit(1)


def require_context(ctx: click.Context) -> PrflowContext:
    if not isinstance(ctx.obj, PrflowContext):
        raise click.ClickException("prflow context is not initialized")
    return ctx.obj


def require_repo_root(ctx: click.Context) -> Path:
    """Repository root of the context, or a not-in-repo error (exit 1)."""
    prflow_ctx = require_context(ctx)
    if prflow_ctx.repo_root is None:
        exit_with_error(
            workflow_error(
                "not-in-repo", f"Not inside a git repository: {prflow_ctx.cwd}"
            )
        )
    return prflow_ctx.repo_root


def resolve_current_branch(ctx: click.Context, repo_root: Path, current: str | None) -> str:
    """The --current-branch value, defaulting to the checked-out branch."""
    if current:
        return current
    branch = require_context(ctx).git.get_current_branch(repo_root)
    if branch is None:
        exit_with_error(
            workflow_error(
                "detached-head",
                "HEAD is detached; pass --current-branch or check out a branch.",
            )
        )
    return branch


def json_errors(command: F) -> F:
    """Report git failures that escape an operation as a JSON error."""

    @functools.wraps(command)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return command(*args, **kwargs)
        except VcsCommandFailed as e:
            exit_with_error(
                WorkflowError(
                    success=False,
                    error_type="vcs-command-failed",
                    message=str(e),
                    details={"command": " ".join(e.command), "stderr": e.stderr},
                )
            )

    return wrapper  # type: ignore[return-value]
