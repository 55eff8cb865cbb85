"""History-rewrite engine: commit-message replacement and squash.

Both operations run the same state machine:

    Validating -> BackupEstablished -> Isolated -> Rewriting -> Reapplying
        -> Published | RolledBack

Validating and BackupEstablished never touch the branch; a failure there is
reported as-is. Rewriting happens on a scratch branch created from the
resolved head. Reapplying moves the real branch to the rewritten tip and
force-pushes it; it is the only step visible outside the local repository.
A git failure from Isolated onwards resets the branch to the backup tag. The
scratch branch is deleted on every exit path.

The backup is a local tag `backup/<branch>/<epoch-ms>` pointing at the
pre-rewrite tip. It is kept after a rewrite (successful or rolled back) and
deleted when the operation turns out to be a no-op.
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.config import PrflowConfig
from prflow.gateway.git.abc import (
    CommitRecord,
    Git,
    VcsCommandFailed,
    normalize_message,
    parse_log_records,
    try_fetch,
)
from prflow.gateway.time.abc import Time
from prflow.naming import backup_tag_name, replace_temp_branch_name, squash_temp_branch_name
from prflow.refs import LOCAL_FIRST, REMOTE_FIRST, RefRange, RefResolver
from prflow.rewrite.msg_filter import commit_message_file, message_filter_command
from prflow.rewrite.types import (
    ReplaceMessagesResult,
    RewriteError,
    RewriteErrorType,
    SquashResult,
)

logger = logging.getLogger(__name__)


def _error(
    error_type: RewriteErrorType, message: str, *, branch: str, **details: str
) -> RewriteError:
    return RewriteError(
        success=False,
        error_type=error_type,
        message=message,
        details={"branch": branch, **details},
    )


class HistoryRewriteEngine:
    """Safe history rewrites on a single feature branch.

    The engine assumes it is the only actor touching the working tree and
    branch refs for the duration of an operation.
    """

    def __init__(self, git: Git, resolver: RefResolver, config: PrflowConfig, time: Time) -> None:
        self._git = git
        self._resolver = resolver
        self._config = config
        self._time = time

    # ============================================================================
    # Operations
    # ============================================================================

    def replace_commit_messages(
        self, repo_root: Path, current: str, target: str, messages: Sequence[str]
    ) -> ReplaceMessagesResult | RewriteError:
        """Replace the messages of target..current, one per commit.

        Args:
            repo_root: Repository to operate on
            current: Branch whose commits are rewritten
            target: Branch the PR targets; commits reachable from it are untouched
            messages: Replacement messages, oldest commit first

        Returns:
            ReplaceMessagesResult with replaced=len(messages) when at least one
            message changed (replaced=0 when none did), or RewriteError
        """
        validated = self._validate(repo_root, current, target)
        if isinstance(validated, RewriteError):
            return validated
        ref_range, records = validated

        if len(records) != len(messages):
            return _error(
                "commit-count-mismatch",
                f"Commit count mismatch: {ref_range.revision_range} has {len(records)} commits "
                f"but {len(messages)} messages were supplied",
                branch=current,
                expected=str(len(records)),
                got=str(len(messages)),
                subjects="\n".join(record.subject for record in records),
            )

        timestamp = self._time.epoch_millis()
        backup = self._establish_backup(repo_root, current, ref_range, timestamp)
        if isinstance(backup, RewriteError):
            return backup

        temp_branch = replace_temp_branch_name(timestamp)

        def rewrite() -> int:
            mapping = self._build_mapping(repo_root, records, messages)
            if not mapping:
                return 0
            with message_filter_command(mapping, timestamp) as filter_command:
                self._git.filter_branch_msg_filter(
                    repo_root, ref_range.base.qualified, temp_branch, filter_command
                )
            return len(mapping)

        changed = self._run_isolated(repo_root, current, ref_range, temp_branch, backup, rewrite)
        if isinstance(changed, RewriteError):
            return changed

        if changed == 0:
            self._drop_backup(repo_root, backup)
            return ReplaceMessagesResult(
                success=True,
                replaced=0,
                changed=0,
                backup_ref=None,
                message="No commit messages differ from the supplied ones; nothing to rewrite.",
            )

        logger.info("replaced %d commit messages on %s (backup %s)", changed, current, backup)
        return ReplaceMessagesResult(
            success=True,
            replaced=len(messages),
            changed=changed,
            backup_ref=backup,
            message=(
                f"Rewrote {changed} of {len(messages)} commit messages on '{current}' and "
                f"force-pushed it. Backup available at tag: {backup}"
            ),
        )

    def squash_commits(
        self, repo_root: Path, current: str, target: str, message: str
    ) -> SquashResult | RewriteError:
        """Collapse target..current into a single commit carrying message.

        A single commit is amended in place. A single commit that already has
        the message is left alone (squashed=False).
        """
        validated = self._validate(repo_root, current, target)
        if isinstance(validated, RewriteError):
            return validated
        ref_range, records = validated

        timestamp = self._time.epoch_millis()
        backup = self._establish_backup(repo_root, current, ref_range, timestamp)
        if isinstance(backup, RewriteError):
            return backup

        temp_branch = squash_temp_branch_name(timestamp)

        def rewrite() -> int:
            return self._squash_on_scratch(
                repo_root, ref_range, temp_branch, records, message, timestamp
            )

        squashed = self._run_isolated(repo_root, current, ref_range, temp_branch, backup, rewrite)
        if isinstance(squashed, RewriteError):
            return squashed

        if squashed == 0:
            self._drop_backup(repo_root, backup)
            return SquashResult(
                success=True,
                squashed=False,
                commit_count=1,
                backup_ref=None,
                message=f"'{current}' already has a single commit with this message.",
            )

        logger.info("squashed %d commits on %s (backup %s)", len(records), current, backup)
        return SquashResult(
            success=True,
            squashed=True,
            commit_count=len(records),
            backup_ref=backup,
            message=(
                f"Squashed {len(records)} commits on '{current}' into 1 and force-pushed it. "
                f"Backup available at tag: {backup}"
            ),
        )

    # ============================================================================
    # Validating
    # ============================================================================

    def _validate(
        self, repo_root: Path, current: str, target: str
    ) -> tuple[RefRange, list[CommitRecord]] | RewriteError:
        """Policy and precondition checks. Performs no mutation.

        Returns:
            The resolved range and its commits (oldest first)
        """
        if self._config.is_protected(current):
            protected = ", ".join(self._config.branch_schema.values())
            return _error(
                "protected-branch",
                f"Operation not allowed: '{current}' is a protected branch. "
                f"Only feature/fix branches can have their history rewritten. "
                f"Protected branches: {protected}",
                branch=current,
            )

        remote = self._resolver.remote
        try_fetch(self._git, repo_root, remote, target, current)
        ref_range = self._resolver.resolve_range(
            repo_root, target, current, base_order=REMOTE_FIRST, head_order=LOCAL_FIRST
        )
        if ref_range is None:
            return _error(
                "ref-not-found",
                f"Could not resolve {target}..{current}. Tried bases "
                f"{remote}/{target}, {target} and heads {current}, {remote}/{current}.",
                branch=current,
                target=target,
            )

        raw = self._git.log_range(
            repo_root,
            ref_range.base.name,
            ref_range.head.name,
            fmt="records",
            base_location=ref_range.base.scope,
            head_location=ref_range.head.scope,
            remote=remote,
        )
        # git log lists newest first; callers supply messages oldest first
        records = list(reversed(parse_log_records(raw)))
        if not records:
            return _error(
                "no-commits-in-range",
                f"No commits found in {ref_range.revision_range}",
                branch=current,
                target=target,
            )

        status = self._git.status_porcelain(repo_root)
        if status:
            return _error(
                "dirty-working-tree",
                "Working tree has uncommitted changes. Commit, stash or clean them "
                "before rewriting history.",
                branch=current,
                status=status,
            )

        return ref_range, records

    # ============================================================================
    # BackupEstablished
    # ============================================================================

    def _establish_backup(
        self, repo_root: Path, current: str, ref_range: RefRange, timestamp: int
    ) -> str | RewriteError:
        tag = backup_tag_name(current, timestamp)
        try:
            self._git.create_tag(repo_root, tag, ref_range.head.qualified)
        except VcsCommandFailed as e:
            return _error(
                "backup-failed",
                f"Failed to create backup tag {tag}; nothing was changed: {e}",
                branch=current,
                stderr=e.stderr,
            )
        logger.debug("backup of %s at tag %s", ref_range.head.qualified, tag)
        return tag

    def _drop_backup(self, repo_root: Path, backup: str) -> None:
        best_effort(
            lambda: self._git.delete_tag(repo_root, backup),
            description=f"delete unused backup tag {backup}",
        )

    # ============================================================================
    # Isolated
    # ============================================================================

    def _run_isolated(
        self,
        repo_root: Path,
        current: str,
        ref_range: RefRange,
        temp_branch: str,
        backup: str,
        rewrite: Callable[[], int],
    ) -> int | RewriteError:
        """Run rewrite on a scratch branch and reapply it if anything changed.

        rewrite returns the number of commits it rewrote; 0 leaves the branch
        alone. Rollback runs while the scratch branch still exists, then the
        scratch branch is discarded.
        """
        try:
            with self._scratch_branch(repo_root, temp_branch, ref_range, current):
                try:
                    changed = rewrite()
                    if changed:
                        self._reapply(repo_root, current, temp_branch)
                except VcsCommandFailed as e:
                    return self._roll_back(repo_root, current, backup, e)
        except VcsCommandFailed as e:
            # The scratch branch could not be created
            return self._roll_back(repo_root, current, backup, e)
        return changed

    @contextmanager
    def _scratch_branch(
        self, repo_root: Path, temp_branch: str, ref_range: RefRange, current: str
    ) -> Iterator[str]:
        """Check out a scratch branch at the resolved head; always delete it."""
        previous = self._git.get_current_branch(repo_root)
        self._git.checkout_branch(
            repo_root, temp_branch, new=True, start_point=ref_range.head.qualified
        )
        try:
            yield temp_branch
        finally:
            self._discard_scratch_branch(repo_root, temp_branch, previous or current)

    def _discard_scratch_branch(self, repo_root: Path, temp_branch: str, return_to: str) -> None:
        on_scratch = best_effort(
            lambda: self._git.get_current_branch(repo_root) == temp_branch,
            description="read current branch",
        )
        if on_scratch is not False:
            best_effort(
                lambda: self._git.checkout_branch(repo_root, return_to),
                description=f"leave scratch branch for {return_to}",
            )
        best_effort(
            lambda: self._git.delete_branch(repo_root, temp_branch),
            description=f"delete scratch branch {temp_branch}",
        )
        best_effort(
            lambda: self._git.delete_ref(repo_root, f"refs/original/refs/heads/{temp_branch}"),
            description=f"delete filter-branch backup of {temp_branch}",
        )

    # ============================================================================
    # Rewriting
    # ============================================================================

    def _build_mapping(
        self, repo_root: Path, records: list[CommitRecord], messages: Sequence[str]
    ) -> dict[str, str]:
        """Hashes whose full message differs from the supplied one -> new message.

        Compares against the exact message (%B); a record's subject joins the
        first paragraph onto one line and cannot be compared directly.
        """
        mapping: dict[str, str] = {}
        for record, new_message in zip(records, messages, strict=True):
            current_message = self._git.show_commit_message(repo_root, record.sha)
            if normalize_message(new_message) != current_message:
                mapping[record.sha] = new_message
        return mapping

    def _squash_on_scratch(
        self,
        repo_root: Path,
        ref_range: RefRange,
        temp_branch: str,
        records: list[CommitRecord],
        message: str,
        timestamp: int,
    ) -> int:
        """Squash the scratch branch. Returns the number of commits squashed."""
        if len(records) == 1:
            existing = self._git.show_commit_message(repo_root, records[0].sha)
            if existing == normalize_message(message):
                return 0
            with commit_message_file(message, timestamp) as message_path:
                self._git.commit(repo_root, message_file=message_path, amend=True)
            return 1

        squash_base = self._git.merge_base(repo_root, ref_range.base.qualified, temp_branch)
        if squash_base is None:
            squash_base = self._git.rev_parse(repo_root, ref_range.base.qualified)
        self._git.reset(repo_root, mode="soft", ref=squash_base)
        with commit_message_file(message, timestamp) as message_path:
            self._git.commit(repo_root, message_file=message_path)
        return len(records)

    # ============================================================================
    # Reapplying / RolledBack
    # ============================================================================

    def _reapply(self, repo_root: Path, current: str, temp_branch: str) -> None:
        rewritten_tip = self._git.rev_parse(repo_root, temp_branch)
        self._git.branch_force_update(repo_root, current, rewritten_tip)
        self._git.checkout_branch(repo_root, current)
        self._git.push(repo_root, self._resolver.remote, current, force=True)

    def _roll_back(
        self, repo_root: Path, current: str, backup: str, cause: VcsCommandFailed
    ) -> RewriteError:
        logger.warning("rewrite of %s failed, restoring from %s: %s", current, backup, cause)
        try:
            self._git.checkout_branch(repo_root, current)
            self._git.reset(repo_root, mode="hard", ref=backup)
            self._git.clean(repo_root)
        except VcsCommandFailed as restore_error:
            logger.error("could not restore %s from %s: %s", current, backup, restore_error)
            return _error(
                "restore-failed",
                f"Rewrite of '{current}' failed ({cause}) and restoring it also failed "
                f"({restore_error}). The repository may be mid-operation; restore manually "
                f"with: git checkout {current} && git reset --hard {backup}",
                branch=current,
                backup_ref=backup,
                cause=str(cause),
                restore_error=str(restore_error),
            )
        return _error(
            "rewrite-failed",
            f"Rewrite of '{current}' failed and the branch was restored. "
            f"Backup available at tag: {backup}. Cause: {cause}",
            branch=current,
            backup_ref=backup,
            cause=str(cause),
        )
