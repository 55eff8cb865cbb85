"""Reference resolution across local and remote scopes.

Git's local (`refs/heads/x`) and remote (`origin/x`) namespaces are disjoint,
so every operation that accepts a branch name first asks the resolver where
that name actually exists, in a caller-chosen fallback order.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from prflow.gateway.git.abc import Git, RefLocation, VcsCommandFailed, qualify_ref

logger = logging.getLogger(__name__)

RefScope = Literal["local", "remote", "any"]

LOCAL_FIRST: tuple[RefLocation, ...] = ("local", "remote")
REMOTE_FIRST: tuple[RefLocation, ...] = ("remote", "local")
REMOTE_ONLY: tuple[RefLocation, ...] = ("remote",)


@dataclass(frozen=True)
class ResolvedRef:
    """A branch name together with the scope it was found in."""

    name: str
    scope: RefLocation
    remote: str

    @property
    def qualified(self) -> str:
        """Name usable in git revision arguments (`origin/x` or `x`)."""
        return qualify_ref(self.name, self.scope, self.remote)


@dataclass(frozen=True)
class RefRange:
    """A resolved `base..head` pair."""

    base: ResolvedRef
    head: ResolvedRef

    @property
    def revision_range(self) -> str:
        return f"{self.base.qualified}..{self.head.qualified}"


class RefResolver:
    """Existence checks and fallback resolution for branch names."""

    def __init__(self, git: Git, remote: str = "origin") -> None:
        self._git = git
        self._remote = remote

    @property
    def remote(self) -> str:
        return self._remote

    def ref_exists(
        self, repo_root: Path, ref: str, scope: RefScope = "local", remote: str | None = None
    ) -> bool:
        """Whether ref exists in the given scope.

        Never raises: a failing git call (unreachable remote, missing git
        binary, not a repository) means "does not exist".
        """
        remote_name = remote if remote is not None else self._remote
        if scope == "any":
            return self.ref_exists(repo_root, ref, "local") or self.ref_exists(
                repo_root, ref, "remote", remote_name
            )
        try:
            if scope == "local":
                return self._git.local_branch_exists(repo_root, ref)
            return self._git.remote_branch_exists(repo_root, remote_name, ref)
        except (VcsCommandFailed, OSError) as e:
            logger.debug("existence check for %s (%s) failed: %s", ref, scope, e)
            return False

    def resolve(
        self, repo_root: Path, ref: str, order: Sequence[RefLocation] = LOCAL_FIRST
    ) -> ResolvedRef | None:
        """First scope in order where ref can be used as a revision, or None.

        A remote scope needs both the branch on the remote and its tracking ref
        (refs/remotes/<remote>/<ref>) locally; without the tracking ref,
        `origin/<ref>` is not a valid revision and the next scope is tried.
        """
        for scope in order:
            if self._usable(repo_root, ref, scope):
                return ResolvedRef(name=ref, scope=scope, remote=self._remote)
        return None

    def resolve_range(
        self,
        repo_root: Path,
        base: str,
        head: str,
        *,
        base_order: Sequence[RefLocation] = REMOTE_FIRST,
        head_order: Sequence[RefLocation] = LOCAL_FIRST,
    ) -> RefRange | None:
        """Resolve head, then base, each to its first usable scope.

        Returns None as soon as either side cannot be resolved; the base is not
        looked up when the head is missing.
        """
        head_ref = self.resolve(repo_root, head, head_order)
        if head_ref is None:
            return None
        base_ref = self.resolve(repo_root, base, base_order)
        if base_ref is None:
            return None
        return RefRange(base=base_ref, head=head_ref)

    def _usable(self, repo_root: Path, ref: str, scope: RefLocation) -> bool:
        if scope == "remote":
            tracking_ref = f"refs/remotes/{self._remote}/{ref}"
            if not self.ref_exists(repo_root, tracking_ref, "local"):
                return False
        return self.ref_exists(repo_root, ref, scope)
