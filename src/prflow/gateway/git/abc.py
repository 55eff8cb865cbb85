"""Version-control façade.

This module provides a uniform command surface over the git operations the
PR workflow and the history-rewrite engine need.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit: In-memory commit graph used by unit tests

Every failure of an underlying git invocation surfaces as VcsCommandFailed;
callers never see raw exit codes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

LogFormat = Literal["messages", "records"]
RefLocation = Literal["local", "remote"]
ResetMode = Literal["soft", "hard"]

# Sentinel appended after every message by log_range(fmt="messages")
COMMIT_DELIMITER = "---ENDCOMMIT---"
# ASCII unit/record separators emitted by log_range(fmt="records")
FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"
LOG_PRETTY_FORMATS: dict[LogFormat, str] = {
    "messages": f"%B%n{COMMIT_DELIMITER}",
    "records": "%H%x1f%s%x1f%b%x1e",
}


@dataclass(frozen=True)
class CommitRecord:
    """One commit of a range query.

    subject and body follow git's %s / %b split: the subject is the first
    paragraph joined onto one line, the body is everything after it.
    """

    sha: str
    subject: str
    body: str

    @property
    def message(self) -> str:
        if not self.body:
            return self.subject
        return f"{self.subject}\n\n{self.body}"

    @staticmethod
    def from_message(sha: str, message: str) -> CommitRecord:
        """Split a full commit message the way git's %s / %b placeholders do."""
        normalized = message.replace("\r\n", "\n").strip()
        first, _, rest = normalized.partition("\n\n")
        subject = " ".join(line.strip() for line in first.splitlines())
        return CommitRecord(sha=sha, subject=subject, body=rest.strip())


class VcsCommandFailed(RuntimeError):
    """A git command exited with an error.

    Attributes:
        command: The full command line that failed
        stderr: What git printed on stderr (stripped)
    """

    def __init__(self, command: list[str], stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        detail = f": {stderr}" if stderr else ""
        super().__init__(f"`{' '.join(command)}` failed{detail}")


def qualify_ref(name: str, location: RefLocation, remote: str = "origin") -> str:
    """Prefix a bare branch name with the remote when it lives on the remote.

    Examples:
        >>> qualify_ref("main", "remote")
        'origin/main'
        >>> qualify_ref("main", "local")
        'main'
    """
    if location == "remote":
        return f"{remote}/{name}"
    return name


def parse_log_records(raw: str) -> list[CommitRecord]:
    """Parse log_range(fmt="records") output. Order is preserved (newest first)."""
    records: list[CommitRecord] = []
    for entry in raw.replace("\r\n", "\n").split(RECORD_SEPARATOR):
        entry = entry.lstrip("\n")
        if not entry.strip():
            continue
        sha, subject, body = entry.split(FIELD_SEPARATOR, 2)
        records.append(CommitRecord(sha=sha.strip(), subject=subject.strip(), body=body.strip()))
    return records


def parse_log_messages(raw: str) -> list[str]:
    """Parse log_range(fmt="messages") output into trimmed full messages.

    Order is preserved (newest first); empty entries are dropped.
    """
    normalized = raw.replace("\r\n", "\n")
    return [entry.strip() for entry in normalized.split(COMMIT_DELIMITER) if entry.strip()]


def normalize_message(message: str) -> str:
    """Canonical form used to decide whether two commit messages differ."""
    return message.replace("\r\n", "\n").strip()


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    Every method takes the repository (or any directory inside it) as its
    first argument; there is no ambient "current repository".
    """

    # ============================================================================
    # Query Operations
    # ============================================================================

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path:
        """Get the repository root directory.

        Raises:
            VcsCommandFailed: If cwd is not inside a git repository
        """
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None in detached HEAD state."""
        ...

    @abstractmethod
    def list_local_branches(self, cwd: Path) -> list[str]:
        """List all local branch names."""
        ...

    @abstractmethod
    def local_branch_exists(self, cwd: Path, ref: str) -> bool:
        """Check a ref under the local namespace (git show-ref --verify --quiet).

        Bare names are looked up as refs/heads/<ref>; names starting with
        refs/ are used as-is.

        Raises:
            VcsCommandFailed: Only for failures other than "ref not found"
        """
        ...

    @abstractmethod
    def remote_branch_exists(self, cwd: Path, remote: str, branch: str) -> bool:
        """Check whether a remote has a branch head (git ls-remote --heads).

        Raises:
            VcsCommandFailed: If the remote cannot be queried
        """
        ...

    @abstractmethod
    def get_remote_url(self, cwd: Path, remote: str) -> str:
        """Get the URL configured for a remote.

        Raises:
            VcsCommandFailed: If the remote does not exist
        """
        ...

    @abstractmethod
    def log_range(
        self,
        cwd: Path,
        base: str,
        head: str,
        *,
        fmt: LogFormat = "messages",
        base_location: RefLocation = "local",
        head_location: RefLocation = "local",
        remote: str = "origin",
    ) -> str:
        """Raw `git log base..head` output, newest commit first.

        fmt="messages" prints each full message followed by COMMIT_DELIMITER;
        fmt="records" prints hash, subject and body separated by ASCII separators.
        Parse with parse_log_messages / parse_log_records.
        """
        ...

    @abstractmethod
    def diff(
        self,
        cwd: Path,
        base: str,
        head: str,
        *,
        stat: bool = False,
        base_location: RefLocation = "local",
        head_location: RefLocation = "local",
        remote: str = "origin",
    ) -> str:
        """`git diff base...head`, optionally as --stat summary."""
        ...

    @abstractmethod
    def merge_base(self, cwd: Path, ref1: str, ref2: str) -> str | None:
        """Best common ancestor of two refs, or None if they share no history."""
        ...

    @abstractmethod
    def rev_list_count_between(self, cwd: Path, base: str, head: str) -> int:
        """Number of commits in base..head."""
        ...

    @abstractmethod
    def rev_parse(self, cwd: Path, ref: str) -> str:
        """Resolve a ref to a full commit hash."""
        ...

    @abstractmethod
    def show_commit_message(self, cwd: Path, commit: str) -> str:
        """Full message of one commit, CRLF-normalized and stripped."""
        ...

    @abstractmethod
    def status_porcelain(self, cwd: Path) -> str:
        """`git status --porcelain` output; empty string when the tree is clean."""
        ...

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    @abstractmethod
    def fetch(self, cwd: Path, remote: str, ref: str | None = None) -> None:
        """Fetch a branch (or everything) from a remote.

        A single branch always lands in refs/remotes/<remote>/<ref>, whatever
        the clone's configured fetch refspecs are.
        """
        ...

    @abstractmethod
    def checkout_branch(
        self, cwd: Path, branch: str, *, new: bool = False, start_point: str | None = None
    ) -> None:
        """Checkout a branch; with new=True create it first (checkout -b)."""
        ...

    @abstractmethod
    def create_branch(self, cwd: Path, branch: str, start_point: str) -> None:
        """Create a branch without checking it out."""
        ...

    @abstractmethod
    def branch_force_update(self, cwd: Path, branch: str, ref: str) -> None:
        """Point a (not checked-out) branch at ref (git branch -f)."""
        ...

    @abstractmethod
    def delete_branch(self, cwd: Path, branch: str) -> None:
        """Force-delete a local branch (git branch -D)."""
        ...

    @abstractmethod
    def delete_ref(self, cwd: Path, ref: str) -> None:
        """Delete an arbitrary ref (git update-ref -d)."""
        ...

    @abstractmethod
    def reset(self, cwd: Path, *, mode: ResetMode = "hard", ref: str | None = None) -> None:
        """Reset HEAD (and index/worktree for hard) to ref, or HEAD if None."""
        ...

    @abstractmethod
    def commit(
        self,
        cwd: Path,
        *,
        message: str | None = None,
        message_file: Path | None = None,
        amend: bool = False,
    ) -> None:
        """Create (or amend) a commit from the index.

        Exactly one of message / message_file must be given.
        """
        ...

    @abstractmethod
    def push(
        self,
        cwd: Path,
        remote: str,
        branch: str,
        *,
        force: bool = False,
        set_upstream: bool = False,
    ) -> None:
        """Push a local branch to the same name on a remote.

        Uses an explicit refs/heads refspec, so the branch does not need to be
        checked out.
        """
        ...

    @abstractmethod
    def create_tag(self, cwd: Path, tag: str, ref: str | None = None) -> None:
        """Create a lightweight tag at ref (HEAD if None)."""
        ...

    @abstractmethod
    def delete_tag(self, cwd: Path, tag: str) -> None:
        """Delete a local tag."""
        ...

    @abstractmethod
    def clean(self, cwd: Path) -> None:
        """Remove untracked files and directories (git clean -fd)."""
        ...

    @abstractmethod
    def filter_branch_msg_filter(
        self, cwd: Path, base: str, head: str, filter_command: str
    ) -> None:
        """Rewrite messages of base..head with `git filter-branch --msg-filter`.

        The filter command receives each original message on stdin and the
        original commit hash in $GIT_COMMIT; its stdout becomes the new message.
        """
        ...


def try_fetch(git: Git, cwd: Path, remote: str, *refs: str) -> list[str]:
    """Fetch each ref from remote, ignoring failures.

    Optional fetches keep remote-tracking refs fresh but must never abort the
    operation issuing them.

    Returns:
        The refs that could not be fetched
    """
    failed: list[str] = []
    for ref in refs:
        try:
            git.fetch(cwd, remote, ref)
        except VcsCommandFailed as e:
            logger.debug("optional fetch of %s/%s failed: %s", remote, ref, e)
            failed.append(ref)
    return failed
