"""Builders for in-memory repositories used across the test suite.

The standard layout is:

    main, staging  ->  "initial commit"
    feat/login     ->  "initial commit" + the given feature commits

with main and staging on the remote, and feat/login pushed unless told
otherwise.
"""

from typing import Any

from prflow.gateway.git.fake import FakeGit, linear_commits

TARGET = "staging"
FEATURE = "feat/login"


def feature_git(
    messages: list[str],
    *,
    current: str = FEATURE,
    pushed: bool = True,
    checked_out: bool = True,
    **kwargs: Any,
) -> FakeGit:
    base = linear_commits(["initial commit"])
    feature = linear_commits(messages, parent=base[-1].sha)
    base_sha = base[-1].sha
    tip = feature[-1].sha if feature else base_sha

    local_branches = {"main": base_sha, TARGET: base_sha, current: tip}
    remote_branches = {"main": base_sha, TARGET: base_sha}
    if pushed:
        remote_branches[current] = tip
    return FakeGit(
        commits=[*base, *feature],
        local_branches=local_branches,
        remote_branches=remote_branches,
        current_branch=current if checked_out else "main",
        **kwargs,
    )


def feature_commits(git: FakeGit, current: str = FEATURE) -> list[str]:
    return git.messages_between(TARGET, current)


def temp_branches(git: FakeGit) -> list[str]:
    return [name for name in git.local_branches if name.startswith("temp/")]

