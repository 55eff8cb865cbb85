"""Production implementation of the Git gateway using subprocess."""

import os
from pathlib import Path

from prflow.gateway.git.abc import (
    LOG_PRETTY_FORMATS,
    Git,
    LogFormat,
    RefLocation,
    ResetMode,
    VcsCommandFailed,
    normalize_message,
    qualify_ref,
)
from prflow.subprocess_utils import run_subprocess_with_context


def _run_git(
    cwd: Path,
    args: list[str],
    *,
    operation_context: str,
    env: dict[str, str] | None = None,
    ok_codes: tuple[int, ...] = (0,),
) -> tuple[int, str]:
    """Run `git <args>` and return (exit code, stdout).

    Raises:
        VcsCommandFailed: If the exit code is not in ok_codes
    """
    cmd = ["git", *args]
    result = run_subprocess_with_context(
        cmd=cmd,
        operation_context=operation_context,
        cwd=cwd,
        check=False,
        env=env,
    )
    if result.returncode not in ok_codes:
        raise VcsCommandFailed(cmd, result.stderr.strip())
    return result.returncode, result.stdout


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    # ============================================================================
    # Query Operations
    # ============================================================================

    def get_repository_root(self, cwd: Path) -> Path:
        _, out = _run_git(cwd, ["rev-parse", "--show-toplevel"], operation_context="find repo root")
        return Path(out.strip())

    def get_current_branch(self, cwd: Path) -> str | None:
        code, out = _run_git(
            cwd,
            ["symbolic-ref", "--quiet", "--short", "HEAD"],
            operation_context="get current branch",
            ok_codes=(0, 1),
        )
        if code != 0:
            return None
        return out.strip() or None

    def list_local_branches(self, cwd: Path) -> list[str]:
        _, out = _run_git(
            cwd,
            ["branch", "--format=%(refname:short)"],
            operation_context="list local branches",
        )
        return [line.strip() for line in out.splitlines() if line.strip()]

    def local_branch_exists(self, cwd: Path, ref: str) -> bool:
        full_ref = ref if ref.startswith("refs/") else f"refs/heads/{ref}"
        code, _ = _run_git(
            cwd,
            ["show-ref", "--verify", "--quiet", full_ref],
            operation_context=f"check local ref '{full_ref}'",
            ok_codes=(0, 1),
        )
        return code == 0

    def remote_branch_exists(self, cwd: Path, remote: str, branch: str) -> bool:
        full_ref = f"refs/heads/{branch}"
        _, out = _run_git(
            cwd,
            ["ls-remote", "--heads", remote, full_ref],
            operation_context=f"query '{remote}' for '{branch}'",
        )
        return any(line.endswith(f"\t{full_ref}") for line in out.splitlines())

    def get_remote_url(self, cwd: Path, remote: str) -> str:
        _, out = _run_git(
            cwd, ["remote", "get-url", remote], operation_context=f"get url of '{remote}'"
        )
        return out.strip()

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
        revision_range = (
            f"{qualify_ref(base, base_location, remote)}..{qualify_ref(head, head_location, remote)}"
        )
        _, out = _run_git(
            cwd,
            ["log", f"--format={LOG_PRETTY_FORMATS[fmt]}", revision_range],
            operation_context=f"log {revision_range}",
        )
        return out

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
        revision_range = (
            f"{qualify_ref(base, base_location, remote)}...{qualify_ref(head, head_location, remote)}"
        )
        args = ["diff"]
        if stat:
            args.append("--stat")
        args.append(revision_range)
        _, out = _run_git(cwd, args, operation_context=f"diff {revision_range}")
        return out

    def merge_base(self, cwd: Path, ref1: str, ref2: str) -> str | None:
        # Exit code 1 means the refs share no history
        code, out = _run_git(
            cwd,
            ["merge-base", ref1, ref2],
            operation_context=f"find merge base of '{ref1}' and '{ref2}'",
            ok_codes=(0, 1),
        )
        if code != 0:
            return None
        return out.strip() or None

    def rev_list_count_between(self, cwd: Path, base: str, head: str) -> int:
        _, out = _run_git(
            cwd,
            ["rev-list", "--count", f"{base}..{head}"],
            operation_context=f"count commits in {base}..{head}",
        )
        return int(out.strip())

    def rev_parse(self, cwd: Path, ref: str) -> str:
        _, out = _run_git(
            cwd,
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            operation_context=f"resolve '{ref}'",
        )
        return out.strip()

    def show_commit_message(self, cwd: Path, commit: str) -> str:
        _, out = _run_git(
            cwd,
            ["log", "-1", "--format=%B", commit],
            operation_context=f"read message of {commit}",
        )
        return normalize_message(out)

    def status_porcelain(self, cwd: Path) -> str:
        _, out = _run_git(cwd, ["status", "--porcelain"], operation_context="read status")
        return out.strip()

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def fetch(self, cwd: Path, remote: str, ref: str | None = None) -> None:
        args = ["fetch", remote]
        if ref is not None:
            # Explicit destination: a single-branch clone would only update FETCH_HEAD
            args.append(f"+refs/heads/{ref}:refs/remotes/{remote}/{ref}")
        _run_git(cwd, args, operation_context=f"fetch {' '.join(args[1:])}")

    def checkout_branch(
        self, cwd: Path, branch: str, *, new: bool = False, start_point: str | None = None
    ) -> None:
        args = ["checkout"]
        if new:
            args.append("-b")
        args.append(branch)
        if start_point is not None:
            args.append(start_point)
        _run_git(cwd, args, operation_context=f"checkout '{branch}'")

    def create_branch(self, cwd: Path, branch: str, start_point: str) -> None:
        _run_git(
            cwd,
            ["branch", branch, start_point],
            operation_context=f"create branch '{branch}' from '{start_point}'",
        )

    def branch_force_update(self, cwd: Path, branch: str, ref: str) -> None:
        _run_git(
            cwd,
            ["branch", "-f", branch, ref],
            operation_context=f"move branch '{branch}' to '{ref}'",
        )

    def delete_branch(self, cwd: Path, branch: str) -> None:
        _run_git(cwd, ["branch", "-D", branch], operation_context=f"delete branch '{branch}'")

    def delete_ref(self, cwd: Path, ref: str) -> None:
        _run_git(cwd, ["update-ref", "-d", ref], operation_context=f"delete ref '{ref}'")

    def reset(self, cwd: Path, *, mode: ResetMode = "hard", ref: str | None = None) -> None:
        args = ["reset", f"--{mode}"]
        if ref is not None:
            args.append(ref)
        _run_git(cwd, args, operation_context=f"reset --{mode}")

    def commit(
        self,
        cwd: Path,
        *,
        message: str | None = None,
        message_file: Path | None = None,
        amend: bool = False,
    ) -> None:
        if (message is None) == (message_file is None):
            raise ValueError("commit() needs exactly one of message or message_file")
        args = ["commit"]
        if amend:
            args.append("--amend")
        if message_file is not None:
            args.extend(["-F", str(message_file)])
        else:
            args.extend(["-m", message])
        _run_git(cwd, args, operation_context="commit")

    def push(
        self,
        cwd: Path,
        remote: str,
        branch: str,
        *,
        force: bool = False,
        set_upstream: bool = False,
    ) -> None:
        args = ["push"]
        if force:
            args.append("--force")
        if set_upstream:
            args.append("--set-upstream")
        args.extend([remote, f"refs/heads/{branch}:refs/heads/{branch}"])
        _run_git(cwd, args, operation_context=f"push '{branch}' to '{remote}'")

    def create_tag(self, cwd: Path, tag: str, ref: str | None = None) -> None:
        args = ["tag", tag]
        if ref is not None:
            args.append(ref)
        _run_git(cwd, args, operation_context=f"create tag '{tag}'")

    def delete_tag(self, cwd: Path, tag: str) -> None:
        _run_git(cwd, ["tag", "-d", tag], operation_context=f"delete tag '{tag}'")

    def clean(self, cwd: Path) -> None:
        _run_git(cwd, ["clean", "-fd"], operation_context="remove untracked files")

    def filter_branch_msg_filter(
        self, cwd: Path, base: str, head: str, filter_command: str
    ) -> None:
        env = {**os.environ, "FILTER_BRANCH_SQUELCH_WARNING": "1"}
        _run_git(
            cwd,
            ["filter-branch", "-f", "--msg-filter", filter_command, "--", f"{base}..{head}"],
            operation_context=f"rewrite messages in {base}..{head}",
            env=env,
        )
