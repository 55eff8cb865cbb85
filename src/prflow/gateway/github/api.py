"""PR gateway backed by the GitHub REST API."""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any

from prflow.gateway.github.abc import PrGateway
from prflow.gateway.github.types import GitHubRepoId, PrDetails, PrListItem

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


class GitHubApiError(Exception):
    """Error from the GitHub REST API."""

    def __init__(self, *, status_code: int, message: str) -> None:
        super().__init__(f"GitHub API error ({status_code}): {message}")
        self.status_code = status_code


class ApiPrGateway(PrGateway):
    """Client for the pull request endpoints of the GitHub REST API.

    The token and repository are resolved when the context is built; either may
    be missing, in which case every request fails with GitHubApiError so that
    commands not talking to GitHub still work.
    """

    def __init__(
        self,
        *,
        token: str | None,
        repo_id: GitHubRepoId | None,
        api_url: str = DEFAULT_API_URL,
    ) -> None:
        self._token = token
        self._repo_id = repo_id
        self._api_url = api_url.rstrip("/")

    def list_prs(self, repo_root: Path, base: str, head: str) -> list[PrListItem]:
        repo_id = self._require_repo_id()
        data = self._request(
            "GET",
            "pulls",
            params={"state": "open", "base": base, "head": f"{repo_id.owner}:{head}"},
        )
        return [PrListItem(number=int(item["number"])) for item in data]

    def view_pr(self, repo_root: Path, number: int) -> PrDetails | None:
        try:
            data = self._request("GET", f"pulls/{number}")
        except GitHubApiError as e:
            if e.status_code == 404:
                return None
            raise
        return _parse_pull(data)

    def edit_pr(self, repo_root: Path, number: int, title: str, body_file: Path) -> None:
        body = body_file.read_text(encoding="utf-8")
        self._request("PATCH", f"pulls/{number}", payload={"title": title, "body": body})

    def create_pr(
        self, repo_root: Path, base: str, head: str, title: str, body_file: Path
    ) -> str:
        body = body_file.read_text(encoding="utf-8")
        data = self._request(
            "POST",
            "pulls",
            payload={"title": title, "head": head, "base": base, "body": body},
        )
        return data["html_url"]

    def _require_repo_id(self) -> GitHubRepoId:
        if self._repo_id is None:
            raise GitHubApiError(
                status_code=0,
                message="Could not determine owner/repo from the remote URL",
            )
        return self._repo_id

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request to /repos/{owner}/{repo}/{path} and decode the JSON reply."""
        if self._token is None:
            raise GitHubApiError(
                status_code=401,
                message="No GitHub token found. Set GITHUB_TOKEN or run `gh auth login`.",
            )
        repo_id = self._require_repo_id()
        url = f"{self._api_url}/repos/{repo_id.owner}/{repo_id.repo}/{path}"
        if params:
            url += f"?{urllib.parse.urlencode(params)}"

        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        request = urllib.request.Request(
            url,
            data=data,
            method=method,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "Content-Type": "application/json",
            },
        )
        logger.debug("%s %s", method, url)

        try:
            with urllib.request.urlopen(request) as response:
                body = response.read().decode("utf-8")
                return json.loads(body) if body else None
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8") if e.fp else ""
            message = body if body else e.reason
            raise GitHubApiError(status_code=e.code, message=message) from e


def _parse_pull(data: dict[str, Any]) -> PrDetails:
    return PrDetails(
        number=int(data["number"]),
        title=data.get("title") or "",
        body=data.get("body") or "",
        url=data.get("html_url") or "",
        head_branch=data.get("head", {}).get("ref", ""),
        base_branch=data.get("base", {}).get("ref", ""),
    )
