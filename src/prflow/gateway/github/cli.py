"""PR gateway backed by the `gh` CLI."""

import json
from pathlib import Path

from prflow.gateway.github.abc import PrGateway
from prflow.gateway.github.types import PrDetails, PrListItem, extract_pr_url
from prflow.subprocess_utils import run_subprocess_with_context

_VIEW_FIELDS = "number,title,body,url,headRefName,baseRefName"
_NOT_FOUND_MARKERS = ("no pull requests found", "could not resolve to a pullrequest")


class CliPrGateway(PrGateway):
    """Production implementation using gh CLI.

    All operations execute actual gh commands via subprocess; gh handles
    authentication and repository detection from the working directory.
    """

    def list_prs(self, repo_root: Path, base: str, head: str) -> list[PrListItem]:
        result = run_subprocess_with_context(
            ["gh", "pr", "list", "--base", base, "--head", head, "--json", "number"],
            operation_context=f"list pull requests from '{head}' into '{base}'",
            cwd=repo_root,
        )
        output = result.stdout.strip()
        if not output:
            return []
        return [PrListItem(number=int(item["number"])) for item in json.loads(output)]

    def view_pr(self, repo_root: Path, number: int) -> PrDetails | None:
        cmd = ["gh", "pr", "view", str(number), "--json", _VIEW_FIELDS]
        result = run_subprocess_with_context(
            cmd,
            operation_context=f"view PR #{number}",
            cwd=repo_root,
            check=False,
        )
        if result.returncode != 0:
            stderr = result.stderr.strip()
            if any(marker in stderr.lower() for marker in _NOT_FOUND_MARKERS):
                return None
            raise RuntimeError(f"Failed to view PR #{number}: `{' '.join(cmd)}`\n{stderr}")
        data = json.loads(result.stdout)
        return PrDetails(
            number=int(data["number"]),
            title=data.get("title") or "",
            body=data.get("body") or "",
            url=data.get("url") or "",
            head_branch=data.get("headRefName") or "",
            base_branch=data.get("baseRefName") or "",
        )

    def edit_pr(self, repo_root: Path, number: int, title: str, body_file: Path) -> None:
        run_subprocess_with_context(
            ["gh", "pr", "edit", str(number), "--title", title, "--body-file", str(body_file)],
            operation_context=f"edit PR #{number}",
            cwd=repo_root,
        )

    def create_pr(
        self, repo_root: Path, base: str, head: str, title: str, body_file: Path
    ) -> str:
        result = run_subprocess_with_context(
            [
                "gh",
                "pr",
                "create",
                "--base",
                base,
                "--head",
                head,
                "--title",
                title,
                "--body-file",
                str(body_file),
            ],
            operation_context=f"create pull request from '{head}' into '{base}'",
            cwd=repo_root,
        )
        # gh prints progress lines before the URL
        output = result.stdout.strip()
        return extract_pr_url(output) or output
