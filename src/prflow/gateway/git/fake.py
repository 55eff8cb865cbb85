"""Fake Git implementation for testing.

FakeGit is an in-memory commit graph: it keeps commits, local branches,
remote branches, tags and HEAD, and every operation reads and mutates that
state the way git would. Commits are content-addressed (parent + message), so
rewriting a commit without changing anything keeps its hash, as in git.
"""

from __future__ import annotations

import hashlib
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from prflow.gateway.git.abc import (
    COMMIT_DELIMITER,
    FIELD_SEPARATOR,
    RECORD_SEPARATOR,
    CommitRecord,
    Git,
    LogFormat,
    RefLocation,
    ResetMode,
    VcsCommandFailed,
    normalize_message,
    qualify_ref,
)

MUTATING_OPERATIONS = frozenset(
    {
        "checkout_branch",
        "create_branch",
        "branch_force_update",
        "delete_branch",
        "delete_ref",
        "reset",
        "commit",
        "push",
        "create_tag",
        "delete_tag",
        "clean",
        "filter_branch_msg_filter",
    }
)


@dataclass(frozen=True)
class FakeCommit:
    sha: str
    parent: str | None
    message: str


@dataclass(frozen=True)
class PushRecord:
    remote: str
    branch: str
    sha: str
    force: bool
    set_upstream: bool


def make_commit(parent: str | None, message: str) -> FakeCommit:
    digest = hashlib.sha1(f"{parent}\0{message}".encode()).hexdigest()
    return FakeCommit(sha=digest, parent=parent, message=message)


def linear_commits(messages: list[str], parent: str | None = None) -> list[FakeCommit]:
    """Build a chain of commits, oldest first, on top of parent."""
    commits: list[FakeCommit] = []
    for message in messages:
        commit = make_commit(parent, message)
        commits.append(commit)
        parent = commit.sha
    return commits


def _format_record(sha: str, message: str) -> str:
    record = CommitRecord.from_message(sha, message)
    body = f"{record.body}\n" if record.body else ""
    return f"{sha}{FIELD_SEPARATOR}{record.subject}{FIELD_SEPARATOR}{body}{RECORD_SEPARATOR}\n"


class FakeGit(Git):
    """In-memory fake implementation of Git.

    State Management:
    -----------------
    Constructor arguments seed the graph; operations mutate it. A single
    remote is modelled: `remote_branches` is the remote's state, and every remote
    branch has a tracking ref (`origin/<name>`) except those listed in
    `untracked_remote_branches`, as in a single-branch clone. Fetching a branch
    (or everything) creates its tracking ref; nothing else about fetch is modelled.

    Failure Injection:
    ------------------
    - failing: operation names that always raise VcsCommandFailed
    - fail_once: operation names that raise VcsCommandFailed on their first call

    Mutation Tracking:
    ------------------
    - mutating_calls: names of every mutating operation invoked, in order
    - fetches, checkouts, pushes, resets, created_tags, deleted_tags,
      deleted_branches, filter_commands
    """

    def __init__(
        self,
        *,
        repo_root: Path = Path("/repo"),
        commits: list[FakeCommit] | None = None,
        local_branches: dict[str, str] | None = None,
        remote_branches: dict[str, str] | None = None,
        untracked_remote_branches: set[str] | None = None,
        tags: dict[str, str] | None = None,
        current_branch: str | None = None,
        remote_name: str = "origin",
        remote_urls: dict[str, str] | None = None,
        status: str = "",
        diff_stat: str = "",
        full_diff: str = "",
        is_repo: bool = True,
        failing: set[str] | None = None,
        fail_once: set[str] | None = None,
    ) -> None:
        self._repo_root = repo_root
        self._commits = {c.sha: c for c in commits} if commits is not None else {}
        self._local_branches = dict(local_branches) if local_branches is not None else {}
        self._remote_branches = dict(remote_branches) if remote_branches is not None else {}
        self._untracked = (
            set(untracked_remote_branches) if untracked_remote_branches is not None else set()
        )
        self._tags = dict(tags) if tags is not None else {}
        self._other_refs: dict[str, str] = {}
        self._current_branch = current_branch
        self._detached_head: str | None = None
        self._remote_name = remote_name
        self._remote_urls = (
            remote_urls
            if remote_urls is not None
            else {remote_name: "git@github.com:acme/widgets.git"}
        )
        self.status = status
        self._diff_stat = diff_stat
        self._full_diff = full_diff
        self._is_repo = is_repo
        self.failing = set(failing) if failing is not None else set()
        self._fail_once = set(fail_once) if fail_once is not None else set()

        self._mutating_calls: list[str] = []
        self._fetches: list[tuple[str, str | None]] = []
        self._checkouts: list[str] = []
        self._pushes: list[PushRecord] = []
        self._resets: list[tuple[ResetMode, str | None]] = []
        self._created_tags: list[str] = []
        self._deleted_tags: list[str] = []
        self._deleted_branches: list[str] = []
        self._filter_commands: list[str] = []

    # ============================================================================
    # Internals
    # ============================================================================

    def _enter(self, operation: str, *details: str) -> None:
        if operation in MUTATING_OPERATIONS:
            self._mutating_calls.append(operation)
        if operation in self.failing:
            raise VcsCommandFailed(["git", operation, *details], f"injected failure: {operation}")
        if operation in self._fail_once:
            self._fail_once.discard(operation)
            raise VcsCommandFailed(["git", operation, *details], f"injected failure: {operation}")

    def _head_sha(self) -> str | None:
        if self._current_branch is not None:
            return self._local_branches.get(self._current_branch)
        return self._detached_head

    def _resolve(self, ref: str) -> str:
        if ref == "HEAD":
            sha = self._head_sha()
            if sha is not None:
                return sha
        elif ref in self._commits:
            return ref
        elif ref.startswith("refs/heads/") and ref[len("refs/heads/") :] in self._local_branches:
            return self._local_branches[ref[len("refs/heads/") :]]
        elif ref.startswith("refs/tags/") and ref[len("refs/tags/") :] in self._tags:
            return self._tags[ref[len("refs/tags/") :]]
        elif ref in self._other_refs:
            return self._other_refs[ref]
        elif ref in self._local_branches:
            return self._local_branches[ref]
        elif ref in self._tags:
            return self._tags[ref]
        else:
            prefix = f"{self._remote_name}/"
            if ref.startswith(prefix) and self._has_tracking_ref(ref[len(prefix) :]):
                return self._remote_branches[ref[len(prefix) :]]
            matches = [sha for sha in self._commits if len(ref) >= 7 and sha.startswith(ref)]
            if len(matches) == 1:
                return matches[0]
        raise VcsCommandFailed(["git", "rev-parse", ref], f"fatal: bad revision '{ref}'")

    def _has_tracking_ref(self, branch: str) -> bool:
        return branch in self._remote_branches and branch not in self._untracked

    def _ancestors(self, sha: str) -> list[str]:
        chain: list[str] = []
        current: str | None = sha
        while current is not None:
            chain.append(current)
            current = self._commits[current].parent
        return chain

    def _range(self, base: str, head: str) -> list[str]:
        """Hashes in base..head, newest first."""
        excluded = set(self._ancestors(self._resolve(base)))
        result: list[str] = []
        for sha in self._ancestors(self._resolve(head)):
            if sha in excluded:
                break
            result.append(sha)
        return result

    def _set_head(self, sha: str) -> None:
        if self._current_branch is not None:
            self._local_branches[self._current_branch] = sha
        else:
            self._detached_head = sha

    def _add_commit(self, parent: str | None, message: str) -> str:
        commit = make_commit(parent, message)
        self._commits.setdefault(commit.sha, commit)
        return commit.sha

    # ============================================================================
    # Query Operations
    # ============================================================================

    def get_repository_root(self, cwd: Path) -> Path:
        self._enter("get_repository_root")
        if not self._is_repo:
            raise VcsCommandFailed(
                ["git", "rev-parse", "--show-toplevel"],
                "fatal: not a git repository (or any of the parent directories): .git",
            )
        return self._repo_root

    def get_current_branch(self, cwd: Path) -> str | None:
        self._enter("get_current_branch")
        return self._current_branch

    def list_local_branches(self, cwd: Path) -> list[str]:
        self._enter("list_local_branches")
        return sorted(self._local_branches)

    def local_branch_exists(self, cwd: Path, ref: str) -> bool:
        self._enter("local_branch_exists", ref)
        if ref.startswith("refs/heads/"):
            return ref[len("refs/heads/") :] in self._local_branches
        if ref.startswith("refs/tags/"):
            return ref[len("refs/tags/") :] in self._tags
        tracking_prefix = f"refs/remotes/{self._remote_name}/"
        if ref.startswith(tracking_prefix):
            return self._has_tracking_ref(ref[len(tracking_prefix) :])
        if ref.startswith("refs/"):
            return ref in self._other_refs
        return ref in self._local_branches

    def remote_branch_exists(self, cwd: Path, remote: str, branch: str) -> bool:
        self._enter("remote_branch_exists", remote, branch)
        if remote != self._remote_name:
            raise VcsCommandFailed(
                ["git", "ls-remote", "--heads", remote, branch],
                f"fatal: '{remote}' does not appear to be a git repository",
            )
        return branch in self._remote_branches

    def get_remote_url(self, cwd: Path, remote: str) -> str:
        self._enter("get_remote_url", remote)
        if remote not in self._remote_urls:
            raise VcsCommandFailed(
                ["git", "remote", "get-url", remote], f"error: No such remote '{remote}'"
            )
        return self._remote_urls[remote]

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
        self._enter("log_range", base, head)
        shas = self._range(
            qualify_ref(base, base_location, remote), qualify_ref(head, head_location, remote)
        )
        if fmt == "records":
            return "".join(_format_record(sha, self._commits[sha].message) for sha in shas)
        return "".join(f"{self._commits[sha].message}\n\n{COMMIT_DELIMITER}\n" for sha in shas)

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
        self._enter("diff", base, head)
        self._resolve(qualify_ref(base, base_location, remote))
        self._resolve(qualify_ref(head, head_location, remote))
        return self._diff_stat if stat else self._full_diff

    def merge_base(self, cwd: Path, ref1: str, ref2: str) -> str | None:
        self._enter("merge_base", ref1, ref2)
        first = set(self._ancestors(self._resolve(ref1)))
        for sha in self._ancestors(self._resolve(ref2)):
            if sha in first:
                return sha
        return None

    def rev_list_count_between(self, cwd: Path, base: str, head: str) -> int:
        self._enter("rev_list_count_between", base, head)
        return len(self._range(base, head))

    def rev_parse(self, cwd: Path, ref: str) -> str:
        self._enter("rev_parse", ref)
        return self._resolve(ref)

    def show_commit_message(self, cwd: Path, commit: str) -> str:
        self._enter("show_commit_message", commit)
        return normalize_message(self._commits[self._resolve(commit)].message)

    def status_porcelain(self, cwd: Path) -> str:
        self._enter("status_porcelain")
        return self.status.strip()

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def fetch(self, cwd: Path, remote: str, ref: str | None = None) -> None:
        self._fetches.append((remote, ref))
        self._enter("fetch", remote, ref or "")
        if remote != self._remote_name:
            raise VcsCommandFailed(
                ["git", "fetch", remote], f"fatal: '{remote}' does not appear to be a git repository"
            )
        if ref is not None and ref not in self._remote_branches:
            raise VcsCommandFailed(
                ["git", "fetch", remote, ref], f"fatal: couldn't find remote ref {ref}"
            )
        if ref is None:
            self._untracked.clear()
        else:
            self._untracked.discard(ref)

    def checkout_branch(
        self, cwd: Path, branch: str, *, new: bool = False, start_point: str | None = None
    ) -> None:
        self._enter("checkout_branch", branch)
        if new:
            if branch in self._local_branches:
                raise VcsCommandFailed(
                    ["git", "checkout", "-b", branch],
                    f"fatal: a branch named '{branch}' already exists",
                )
            sha = self._resolve(start_point if start_point is not None else "HEAD")
            self._local_branches[branch] = sha
        elif branch not in self._local_branches:
            if not self._has_tracking_ref(branch):
                raise VcsCommandFailed(
                    ["git", "checkout", branch],
                    f"error: pathspec '{branch}' did not match any file(s) known to git",
                )
            self._local_branches[branch] = self._remote_branches[branch]
        self._current_branch = branch
        self._detached_head = None
        self._checkouts.append(branch)

    def create_branch(self, cwd: Path, branch: str, start_point: str) -> None:
        self._enter("create_branch", branch, start_point)
        if branch in self._local_branches:
            raise VcsCommandFailed(
                ["git", "branch", branch, start_point],
                f"fatal: a branch named '{branch}' already exists",
            )
        self._local_branches[branch] = self._resolve(start_point)

    def branch_force_update(self, cwd: Path, branch: str, ref: str) -> None:
        self._enter("branch_force_update", branch, ref)
        if branch == self._current_branch:
            raise VcsCommandFailed(
                ["git", "branch", "-f", branch, ref],
                f"fatal: cannot force update the branch '{branch}' used by worktree",
            )
        self._local_branches[branch] = self._resolve(ref)

    def delete_branch(self, cwd: Path, branch: str) -> None:
        self._enter("delete_branch", branch)
        if branch == self._current_branch:
            raise VcsCommandFailed(
                ["git", "branch", "-D", branch],
                f"error: cannot delete branch '{branch}' used by worktree",
            )
        if branch not in self._local_branches:
            raise VcsCommandFailed(
                ["git", "branch", "-D", branch], f"error: branch '{branch}' not found"
            )
        del self._local_branches[branch]
        self._deleted_branches.append(branch)

    def delete_ref(self, cwd: Path, ref: str) -> None:
        self._enter("delete_ref", ref)
        self._other_refs.pop(ref, None)

    def reset(self, cwd: Path, *, mode: ResetMode = "hard", ref: str | None = None) -> None:
        self._enter("reset", mode, ref or "HEAD")
        self._set_head(self._resolve(ref if ref is not None else "HEAD"))
        if mode == "hard":
            # Tracked changes are discarded, untracked files survive
            kept = [line for line in self.status.splitlines() if line.startswith("??")]
            self.status = "\n".join(kept)
        self._resets.append((mode, ref))

    def commit(
        self,
        cwd: Path,
        *,
        message: str | None = None,
        message_file: Path | None = None,
        amend: bool = False,
    ) -> None:
        self._enter("commit")
        if message_file is not None and message is None:
            message = message_file.read_text(encoding="utf-8")
        elif message is None or message_file is not None:
            raise ValueError("commit() needs exactly one of message or message_file")
        head = self._head_sha()
        if head is None:
            parent = None
        elif amend:
            parent = self._commits[head].parent
        else:
            parent = head
        self._set_head(self._add_commit(parent, normalize_message(message)))

    def push(
        self,
        cwd: Path,
        remote: str,
        branch: str,
        *,
        force: bool = False,
        set_upstream: bool = False,
    ) -> None:
        self._enter("push", remote, branch)
        if branch not in self._local_branches:
            raise VcsCommandFailed(
                ["git", "push", remote, branch], f"error: src refspec {branch} does not match any"
            )
        sha = self._local_branches[branch]
        remote_sha = self._remote_branches.get(branch)
        if not force and remote_sha is not None and remote_sha not in self._ancestors(sha):
            raise VcsCommandFailed(
                ["git", "push", remote, branch], "! [rejected] (non-fast-forward)"
            )
        self._remote_branches[branch] = sha
        self._untracked.discard(branch)
        self._pushes.append(
            PushRecord(
                remote=remote, branch=branch, sha=sha, force=force, set_upstream=set_upstream
            )
        )

    def create_tag(self, cwd: Path, tag: str, ref: str | None = None) -> None:
        self._enter("create_tag", tag)
        if tag in self._tags:
            raise VcsCommandFailed(["git", "tag", tag], f"fatal: tag '{tag}' already exists")
        self._tags[tag] = self._resolve(ref if ref is not None else "HEAD")
        self._created_tags.append(tag)

    def delete_tag(self, cwd: Path, tag: str) -> None:
        self._enter("delete_tag", tag)
        if tag not in self._tags:
            raise VcsCommandFailed(["git", "tag", "-d", tag], f"error: tag '{tag}' not found.")
        del self._tags[tag]
        self._deleted_tags.append(tag)

    def clean(self, cwd: Path) -> None:
        self._enter("clean")
        kept = [line for line in self.status.splitlines() if not line.startswith("??")]
        self.status = "\n".join(kept)

    def filter_branch_msg_filter(
        self, cwd: Path, base: str, head: str, filter_command: str
    ) -> None:
        """Run filter_command once per commit in base..head, as git would."""
        self._enter("filter_branch_msg_filter", base, head)
        self._filter_commands.append(filter_command)
        if head not in self._local_branches:
            raise VcsCommandFailed(
                ["git", "filter-branch", "--", f"{base}..{head}"],
                f"fatal: '{head}' is not a branch",
            )
        old_tip = self._local_branches[head]
        rewritten_parent: str | None = None
        for index, sha in enumerate(reversed(self._range(base, head))):
            commit = self._commits[sha]
            result = subprocess.run(
                filter_command,
                shell=True,
                input=f"{commit.message}\n",
                capture_output=True,
                encoding="utf-8",
                check=False,
                env={**os.environ, "GIT_COMMIT": sha},
            )
            if result.returncode != 0:
                raise VcsCommandFailed(
                    ["git", "filter-branch", "--msg-filter", filter_command],
                    result.stderr.strip(),
                )
            parent = commit.parent if index == 0 else rewritten_parent
            rewritten_parent = self._add_commit(parent, normalize_message(result.stdout))
        if rewritten_parent is not None:
            self._other_refs[f"refs/original/refs/heads/{head}"] = old_tip
            self._local_branches[head] = rewritten_parent

    # ============================================================================
    # Test Helpers
    # ============================================================================

    def branch_head(self, branch: str) -> str | None:
        return self._local_branches.get(branch)

    def remote_head(self, branch: str) -> str | None:
        return self._remote_branches.get(branch)

    def messages_between(self, base: str, head: str) -> list[str]:
        """Messages of base..head, oldest first."""
        return [self._commits[sha].message for sha in reversed(self._range(base, head))]

    @property
    def local_branches(self) -> dict[str, str]:
        return dict(self._local_branches)

    @property
    def tags(self) -> dict[str, str]:
        return dict(self._tags)

    @property
    def other_refs(self) -> dict[str, str]:
        return dict(self._other_refs)

    @property
    def mutating_calls(self) -> list[str]:
        return list(self._mutating_calls)

    @property
    def fetches(self) -> list[tuple[str, str | None]]:
        return list(self._fetches)

    @property
    def checkouts(self) -> list[str]:
        return list(self._checkouts)

    @property
    def pushes(self) -> list[PushRecord]:
        return list(self._pushes)

    @property
    def resets(self) -> list[tuple[ResetMode, str | None]]:
        return list(self._resets)

    @property
    def created_tags(self) -> list[str]:
        return list(self._created_tags)

    @property
    def deleted_tags(self) -> list[str]:
        return list(self._deleted_tags)

    @property
    def deleted_branches(self) -> list[str]:
        return list(self._deleted_branches)

    @property
    def filter_commands(self) -> list[str]:
        return list(self._filter_commands)
