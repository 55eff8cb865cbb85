"""Fake PR gateway for testing."""

from dataclasses import dataclass
from pathlib import Path

from prflow.gateway.github.abc import PrGateway
from prflow.gateway.github.types import PrDetails, PrListItem


@dataclass(frozen=True)
class EditedPr:
    number: int
    title: str
    body: str


@dataclass(frozen=True)
class CreatedPr:
    base: str
    head: str
    title: str
    body: str


class FakePrGateway(PrGateway):
    """In-memory fake of the remote PR service.

    Bodies are read from the body file at call time, so tests can assert on
    them after the caller has deleted the file.

    Mutation Tracking:
    -----------------
    - edited_prs: EditedPr per edit_pr() call
    - created_prs: CreatedPr per create_pr() call
    """

    def __init__(
        self,
        *,
        prs: list[PrDetails] | None = None,
        url_prefix: str = "https://github.com/acme/widgets/pull/",
        create_error: str | None = None,
    ) -> None:
        self._prs = {pr.number: pr for pr in prs} if prs is not None else {}
        self._url_prefix = url_prefix
        self._create_error = create_error
        self._edited_prs: list[EditedPr] = []
        self._created_prs: list[CreatedPr] = []

    def list_prs(self, repo_root: Path, base: str, head: str) -> list[PrListItem]:
        return [
            PrListItem(number=pr.number)
            for pr in self._prs.values()
            if pr.base_branch == base and pr.head_branch == head
        ]

    def view_pr(self, repo_root: Path, number: int) -> PrDetails | None:
        return self._prs.get(number)

    def edit_pr(self, repo_root: Path, number: int, title: str, body_file: Path) -> None:
        if number not in self._prs:
            raise RuntimeError(f"Failed to edit PR #{number}: no pull requests found")
        body = body_file.read_text(encoding="utf-8")
        old = self._prs[number]
        self._prs[number] = PrDetails(
            number=number,
            title=title,
            body=body,
            url=old.url,
            head_branch=old.head_branch,
            base_branch=old.base_branch,
        )
        self._edited_prs.append(EditedPr(number=number, title=title, body=body))

    def create_pr(
        self, repo_root: Path, base: str, head: str, title: str, body_file: Path
    ) -> str:
        if self._create_error is not None:
            raise RuntimeError(self._create_error)
        body = body_file.read_text(encoding="utf-8")
        number = max(self._prs, default=0) + 1
        url = f"{self._url_prefix}{number}"
        self._prs[number] = PrDetails(
            number=number, title=title, body=body, url=url, head_branch=head, base_branch=base
        )
        self._created_prs.append(CreatedPr(base=base, head=head, title=title, body=body))
        return url

    @property
    def edited_prs(self) -> list[EditedPr]:
        return list(self._edited_prs)

    @property
    def created_prs(self) -> list[CreatedPr]:
        return list(self._created_prs)
