from pathlib import Path

from prflow.context import PrflowContext
from prflow.gateway.github.fake import FakePrGateway
from prflow.gateway.github.types import PrDetails
from prflow.workflow.types import UpdatePrByLinkResult, WorkflowError
from prflow.workflow.update_pr_by_link import update_pr_by_link
from tests.builders import FEATURE, TARGET, feature_git

PR = PrDetails(
    number=3,
    title="feat: login",
    body="Adds login",
    url="https://github.com/acme/widgets/pull/3",
    head_branch=FEATURE,
    base_branch=TARGET,
)


def _ctx(tmp_path: Path, prs: list[PrDetails]) -> PrflowContext:
    return PrflowContext.for_test(
        git=feature_git(["feat: a"]), github=FakePrGateway(prs=prs), repo_root=tmp_path
    )


def test_prepares_update_of_linked_pr(tmp_path: Path) -> None:
    result = update_pr_by_link(_ctx(tmp_path, [PR]), tmp_path, PR.url)

    assert isinstance(result, UpdatePrByLinkResult)
    assert result.pr_number == 3
    assert result.current_branch == FEATURE
    assert result.target_branch == TARGET
    assert Path(result.files_to_read[-1]).name == "pr-content-3.md"


def test_invalid_link(tmp_path: Path) -> None:
    result = update_pr_by_link(_ctx(tmp_path, [PR]), tmp_path, "https://example.com/nope")

    assert isinstance(result, WorkflowError)
    assert result.error_type == "invalid-input"


def test_unknown_pr(tmp_path: Path) -> None:
    result = update_pr_by_link(
        _ctx(tmp_path, []), tmp_path, "https://github.com/acme/widgets/pull/404"
    )

    assert isinstance(result, WorkflowError)
    assert result.error_type == "pr-not-found"
