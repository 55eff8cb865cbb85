"""Abstract interface for the remote pull-request service.

Two production variants exist: CliPrGateway (drives the `gh` CLI) and
ApiPrGateway (talks to the REST API). The workflow only depends on this
interface; the variant is chosen from configuration when the context is built.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from prflow.gateway.github.types import PrDetails, PrListItem


class PrGateway(ABC):
    """List, view, edit and create pull requests."""

    @abstractmethod
    def list_prs(self, repo_root: Path, base: str, head: str) -> list[PrListItem]:
        """Open pull requests from head into base."""
        ...

    @abstractmethod
    def view_pr(self, repo_root: Path, number: int) -> PrDetails | None:
        """Details of a pull request, or None if it does not exist."""
        ...

    @abstractmethod
    def edit_pr(self, repo_root: Path, number: int, title: str, body_file: Path) -> None:
        """Replace title and body of an existing pull request."""
        ...

    @abstractmethod
    def create_pr(
        self, repo_root: Path, base: str, head: str, title: str, body_file: Path
    ) -> str:
        """Open a pull request and return its URL."""
        ...
