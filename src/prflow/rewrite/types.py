"""Result types for history-rewrite operations."""

from dataclasses import dataclass
from typing import Literal

# =============================================================================
# Error Types
# =============================================================================

RewriteErrorType = Literal[
    # Validating: nothing was touched
    "protected-branch",
    "ref-not-found",
    "no-commits-in-range",
    "commit-count-mismatch",
    "dirty-working-tree",
    # BackupEstablished: nothing was touched
    "backup-failed",
    # Rewriting / Reapplying: the branch was restored from the backup
    "rewrite-failed",
    # Rollback itself failed: the repository needs manual recovery
    "restore-failed",
]


@dataclass(frozen=True)
class RewriteError:
    """Failure of a rewrite operation.

    details always carries `branch`; once a backup exists it also carries
    `backup_ref`, and the message names it.
    """

    success: Literal[False]
    error_type: RewriteErrorType
    message: str
    details: dict[str, str]


# =============================================================================
# Replace Commit Messages
# =============================================================================


@dataclass(frozen=True)
class ReplaceMessagesResult:
    """Success result from replacing commit messages.

    replaced is the number of messages supplied (equal to the number of commits
    in range) whenever at least one commit changed, and 0 for a no-op.
    changed is the number of commits whose message actually differed.
    """

    success: Literal[True]
    replaced: int
    changed: int
    backup_ref: str | None
    message: str


# =============================================================================
# Squash Commits
# =============================================================================


@dataclass(frozen=True)
class SquashResult:
    """Success result from squashing a commit range into one commit."""

    success: Literal[True]
    squashed: bool
    commit_count: int
    backup_ref: str | None
    message: str
