"""Result types for workflow operations."""

from dataclasses import dataclass
from typing import Literal

WorkflowErrorType = Literal[
    "not-in-repo",
    "detached-head",
    "invalid-input",
    "ref-not-found",
    "branch-exists",
    "fetch-failed",
    "push-failed",
    "pr-not-found",
    "github-failed",
    "vcs-command-failed",
]


@dataclass(frozen=True)
class WorkflowError:
    """Error result from any workflow operation."""

    success: Literal[False]
    error_type: WorkflowErrorType
    message: str
    details: dict[str, str]


def workflow_error(error_type: WorkflowErrorType, message: str, **details: str) -> WorkflowError:
    return WorkflowError(success=False, error_type=error_type, message=message, details=details)


def numbered(actions: list[str]) -> list[str]:
    """Prefix each action with its 1-based position.

    Examples:
        >>> numbered(["Run prepare-pr", "Run submit-pr"])
        ['1. Run prepare-pr', '2. Run submit-pr']
    """
    return [f"{index}. {action}" for index, action in enumerate(actions, start=1)]


# =============================================================================
# detect-branches
# =============================================================================


@dataclass(frozen=True)
class DetectBranchesResult:
    success: Literal[True]
    current_branch: str
    suggested_target: str
    inferred_card_link: str | None
    next_actions: list[str]
    message: str


# =============================================================================
# prepare-pr / update-pr-by-link
# =============================================================================


@dataclass(frozen=True)
class PreparePrResult:
    """Everything needed to write a PR title and body.

    files_to_read lists the change bundle and, for an existing PR, a snapshot
    of its current title and body.
    """

    success: Literal[True]
    pr_number: int | None
    pr_template: str | None
    files_to_read: list[str]
    card_links: list[str]
    next_actions: list[str]
    message: str


@dataclass(frozen=True)
class UpdatePrByLinkResult:
    success: Literal[True]
    pr_number: int
    pr_url: str
    current_branch: str
    target_branch: str
    pr_template: str | None
    files_to_read: list[str]
    card_links: list[str]
    next_actions: list[str]
    message: str


# =============================================================================
# submit-pr
# =============================================================================


@dataclass(frozen=True)
class SubmitPrResult:
    success: Literal[True]
    pr_url: str | None
    pr_created: bool
    next_actions: list[str]
    message: str


# =============================================================================
# get-commit-messages / get-commit-contents
# =============================================================================


@dataclass(frozen=True)
class CommitMessagesResult:
    """Full commit messages of target..current, oldest first."""

    success: Literal[True]
    commits: list[str]


@dataclass(frozen=True)
class CommitContentsResult:
    success: Literal[True]
    changes_file: str
    commit_count: int


# =============================================================================
# create-branch
# =============================================================================


@dataclass(frozen=True)
class CreateBranchResult:
    success: Literal[True]
    branch_name: str
    base_branch: str
    message: str
