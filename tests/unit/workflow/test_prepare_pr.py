import re
from pathlib import Path

from prflow.config import PrflowConfig
from prflow.context import PrflowContext
from prflow.gateway.git.fake import FakeGit, linear_commits
from prflow.gateway.github.fake import FakePrGateway
from prflow.gateway.github.types import PrDetails
from prflow.workflow.prepare_pr import find_pr_template, prepare_pr
from prflow.workflow.types import PreparePrResult, WorkflowError
from tests.builders import FEATURE, TARGET, feature_git

CONFIG = PrflowConfig(
    card_link_infer_pattern=re.compile(r"^\w+/(\d+)-.*$"),
    card_link_infer_replacement=r"https://tracker.example.com/cards/\1",
    card_link_website_pattern=re.compile(r"https://tracker\.example\.com/cards/\d+"),
)

EXISTING_PR = PrDetails(
    number=12,
    title="feat: login",
    body="Closes https://tracker.example.com/cards/99",
    url="https://github.com/acme/widgets/pull/12",
    head_branch=FEATURE,
    base_branch=TARGET,
)


def _ctx(git: FakeGit, tmp_path: Path, prs: list[PrDetails] | None = None) -> PrflowContext:
    return PrflowContext.for_test(
        git=git, github=FakePrGateway(prs=prs), config=CONFIG, repo_root=tmp_path
    )


class TestPrepareNewPr:
    def test_collects_change_bundle(self, tmp_path: Path) -> None:
        git = feature_git(["feat: add form", "fix: validation"])

        result = prepare_pr(_ctx(git, tmp_path), tmp_path, TARGET, FEATURE)

        assert isinstance(result, PreparePrResult)
        assert result.pr_number is None
        assert result.pr_template is None
        assert len(result.files_to_read) == 1
        bundle = Path(result.files_to_read[0]).read_text(encoding="utf-8")
        assert "feat: add form\n\n---\n\nfix: validation" in bundle
        assert result.next_actions[-1].endswith("Run submit-pr")
        assert "A new PR will be created." in result.message

    def test_card_links_from_option_and_branch_name(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"], current="feat/1234-login")

        result = prepare_pr(
            _ctx(git, tmp_path),
            tmp_path,
            TARGET,
            "feat/1234-login",
            card_link="https://tracker.example.com/cards/1234",
        )

        assert isinstance(result, PreparePrResult)
        assert result.card_links == ["https://tracker.example.com/cards/1234"]
        assert any("Fetch card info" in action for action in result.next_actions)

    def test_template_is_found_case_insensitively(self, tmp_path: Path) -> None:
        (tmp_path / ".github").mkdir()
        (tmp_path / ".github" / "PULL_REQUEST_TEMPLATE.md").write_text("## Summary\n")

        result = prepare_pr(_ctx(feature_git(["feat: a"]), tmp_path), tmp_path, TARGET, FEATURE)

        assert isinstance(result, PreparePrResult)
        assert result.pr_template == ".github/PULL_REQUEST_TEMPLATE.md"
        assert "2. Read prTemplate to use as PR body template" in result.next_actions


class TestPrepareExistingPr:
    def test_snapshot_and_card_links_of_existing_pr(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"])

        result = prepare_pr(_ctx(git, tmp_path, [EXISTING_PR]), tmp_path, TARGET, FEATURE)

        assert isinstance(result, PreparePrResult)
        assert result.pr_number == 12
        assert result.card_links == ["https://tracker.example.com/cards/99"]
        snapshot = Path(result.files_to_read[1])
        assert snapshot.name == "pr-content-12.md"
        assert snapshot.read_text(encoding="utf-8") == (
            "Title: feat: login\n\nCloses https://tracker.example.com/cards/99"
        )
        assert "Existing PR #12 will be updated." in result.message


class TestTargetBranch:
    def test_remote_only_target_gets_a_local_branch(self, tmp_path: Path) -> None:
        base = linear_commits(["initial commit"])
        feature = linear_commits(["feat: a"], parent=base[0].sha)
        git = FakeGit(
            commits=[*base, *feature],
            local_branches={FEATURE: feature[0].sha},
            remote_branches={TARGET: base[0].sha},
            current_branch=FEATURE,
        )

        result = prepare_pr(_ctx(git, tmp_path), tmp_path, TARGET, FEATURE)

        assert isinstance(result, PreparePrResult)
        assert git.local_branches[TARGET] == base[0].sha

    def test_unknown_target(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"])

        result = prepare_pr(_ctx(git, tmp_path), tmp_path, "nope", FEATURE)

        assert isinstance(result, WorkflowError)
        assert result.error_type == "ref-not-found"
        assert result.details == {"ref": "nope"}

    def test_target_fetch_is_mandatory(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"], failing={"fetch"})

        result = prepare_pr(_ctx(git, tmp_path), tmp_path, TARGET, FEATURE)

        assert isinstance(result, WorkflowError)
        assert result.error_type == "fetch-failed"

    def test_unknown_current(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"])

        result = prepare_pr(_ctx(git, tmp_path), tmp_path, TARGET, "feat/nope")

        assert isinstance(result, WorkflowError)
        assert result.error_type == "ref-not-found"
        assert result.details == {"ref": "feat/nope"}


def test_find_pr_template_without_github_folder(tmp_path: Path) -> None:
    assert find_pr_template(tmp_path) is None
