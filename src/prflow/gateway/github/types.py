"""Types and URL helpers shared by the PR gateway implementations."""

import re
from dataclasses import dataclass

_REMOTE_URL_RE = re.compile(
    r"^(?:[\w.+-]+@|(?:https?|ssh|git)://(?:[^@/]+@)?)"
    r"(?P<host>[^:/]+)(?::\d+)?[:/]"
    r"(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$"
)
_PR_URL_RE = re.compile(
    r"https?://[^\s/]+/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+)/pull/(?P<number>\d+)"
)


@dataclass(frozen=True)
class GitHubRepoId:
    """Owner and name of a hosted repository."""

    owner: str
    repo: str


@dataclass(frozen=True)
class PrListItem:
    number: int


@dataclass(frozen=True)
class PrDetails:
    """The parts of a pull request the workflow reads."""

    number: int
    title: str
    body: str
    url: str
    head_branch: str
    base_branch: str


@dataclass(frozen=True)
class PrReference:
    """A pull request identified by URL."""

    repo_id: GitHubRepoId
    number: int


def parse_remote_url(url: str) -> GitHubRepoId | None:
    """Parse owner/repo from a git remote URL (SSH, HTTPS or scp-like).

    Examples:
        >>> parse_remote_url("git@github.com:acme/widgets.git")
        GitHubRepoId(owner='acme', repo='widgets')
        >>> parse_remote_url("https://github.com/acme/widgets")
        GitHubRepoId(owner='acme', repo='widgets')
        >>> parse_remote_url("/srv/git/widgets.git") is None
        True
    """
    match = _REMOTE_URL_RE.match(url.strip())
    if match is None:
        return None
    return GitHubRepoId(owner=match.group("owner"), repo=match.group("repo"))


def parse_pr_url(url: str) -> PrReference | None:
    """Parse a pull request URL such as https://github.com/acme/widgets/pull/42."""
    match = _PR_URL_RE.search(url)
    if match is None:
        return None
    return PrReference(
        repo_id=GitHubRepoId(owner=match.group("owner"), repo=match.group("repo")),
        number=int(match.group("number")),
    )


def extract_pr_url(text: str) -> str | None:
    """First pull request URL mentioned in text (e.g. `gh pr create` output)."""
    match = _PR_URL_RE.search(text)
    if match is None:
        return None
    return match.group(0)
