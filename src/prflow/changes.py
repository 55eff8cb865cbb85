"""Change-set extraction: what a branch adds on top of its review baseline."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.gateway.git.abc import Git, parse_log_messages, try_fetch
from prflow.gateway.time.abc import Time
from prflow.refs import LOCAL_FIRST, REMOTE_ONLY, RefResolver
from prflow.scratch import write_scratch_file

logger = logging.getLogger(__name__)

COMMIT_SEPARATOR = "\n\n---\n\n"
NO_DIFF_SUMMARY = "No diff available"
NO_CODE_DIFF = "No code diff available"


class RefNotFound(Exception):
    """A branch could not be found in any of the scopes that were checked."""

    def __init__(self, ref: str, scopes: tuple[str, ...] = ()) -> None:
        self.ref = ref
        self.scopes = scopes
        where = f" ({' or '.join(scopes)})" if scopes else ""
        super().__init__(f"Ref '{ref}' not found{where}")


@dataclass(frozen=True)
class ChangeBundle:
    """Point-in-time description of the delta between target and current.

    Attributes:
        commit_messages: Full commit messages, oldest first
        diff_summary: `git diff --stat` output, or NO_DIFF_SUMMARY
        full_diff: Full diff, or NO_CODE_DIFF when it could not be produced
        path: Where the bundle was written
    """

    commit_messages: tuple[str, ...]
    diff_summary: str
    full_diff: str
    path: Path

    @property
    def commits_text(self) -> str:
        return COMMIT_SEPARATOR.join(self.commit_messages)


def _render_bundle(
    commit_messages: tuple[str, ...], diff_summary: str, full_diff: str
) -> Iterator[str]:
    yield "=== COMMITS ===\n"
    for message in commit_messages:
        yield f"{message}\n\n---\n\n"
    yield "=== DIFF SUMMARY ===\n"
    yield f"{diff_summary}\n\n\n"
    yield "=== CODE DIFF ===\n"
    yield full_diff if full_diff.endswith("\n") else f"{full_diff}\n"


def generate_change_bundle(
    git: Git,
    resolver: RefResolver,
    time: Time,
    repo_root: Path,
    target: str,
    current: str,
) -> ChangeBundle:
    """Collect commits and diffs of target..current into a scratch artifact.

    `current` is looked up locally first, then on the remote; `target` is the
    review baseline and must exist on the remote.

    Raises:
        RefNotFound: If current or target cannot be resolved (checked before
            any log or diff call). target resolves only once fetching it left
            a remote-tracking ref behind.
        VcsCommandFailed: If reading the log or the diff summary fails
    """
    head = resolver.resolve(repo_root, current, LOCAL_FIRST)
    if head is None:
        raise RefNotFound(current, LOCAL_FIRST)
    # Refreshes (or creates) the tracking ref the range is read from
    try_fetch(git, repo_root, resolver.remote, target)
    base = resolver.resolve(repo_root, target, REMOTE_ONLY)
    if base is None:
        raise RefNotFound(target, REMOTE_ONLY)

    raw_log = git.log_range(
        repo_root,
        base.name,
        head.name,
        fmt="messages",
        base_location=base.scope,
        head_location=head.scope,
        remote=resolver.remote,
    )
    commit_messages = tuple(reversed(parse_log_messages(raw_log)))

    diff_summary = git.diff(
        repo_root,
        base.name,
        head.name,
        stat=True,
        base_location=base.scope,
        head_location=head.scope,
        remote=resolver.remote,
    ).strip()
    if not diff_summary:
        diff_summary = NO_DIFF_SUMMARY

    full_diff = best_effort(
        lambda: git.diff(
            repo_root,
            base.name,
            head.name,
            base_location=base.scope,
            head_location=head.scope,
            remote=resolver.remote,
        ),
        description=f"diff {base.qualified}...{head.qualified}",
    )
    if not full_diff:
        full_diff = NO_CODE_DIFF

    path = write_scratch_file(
        repo_root,
        f"pr-changes-{time.epoch_millis()}.txt",
        _render_bundle(commit_messages, diff_summary, full_diff),
    )
    logger.debug("wrote change bundle for %s..%s to %s", base.qualified, head.qualified, path)
    return ChangeBundle(
        commit_messages=commit_messages,
        diff_summary=diff_summary,
        full_diff=full_diff,
        path=path,
    )
