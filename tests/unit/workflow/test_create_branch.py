from pathlib import Path

from prflow.context import PrflowContext
from prflow.gateway.git.fake import FakeGit, linear_commits
from prflow.workflow.create_branch import create_branch
from prflow.workflow.types import CreateBranchResult, WorkflowError


def _git() -> FakeGit:
    trunk = linear_commits(["c0", "c1", "c2"])
    return FakeGit(
        commits=trunk,
        local_branches={"main": trunk[0].sha, "staging": trunk[1].sha},
        remote_branches={"main": trunk[0].sha, "staging": trunk[2].sha},
        current_branch="main",
    )


def _create(git: FakeGit, tmp_path: Path, *args: str, **kwargs: str) -> object:
    ctx = PrflowContext.for_test(git=git, repo_root=tmp_path)
    return create_branch(ctx, tmp_path, *args, **kwargs)


def test_feature_branch_starts_from_remote_homologation(tmp_path: Path) -> None:
    git = _git()

    result = _create(git, tmp_path, "feat", "123 Add Login")

    assert isinstance(result, CreateBranchResult)
    assert result.branch_name == "feat/123-add-login"
    assert result.base_branch == "staging"
    assert git.get_current_branch(tmp_path) == "feat/123-add-login"
    assert git.branch_head("feat/123-add-login") == git.remote_head("staging")


def test_hotfix_starts_from_production(tmp_path: Path) -> None:
    git = _git()

    result = _create(git, tmp_path, "hotfix", "crash")

    assert isinstance(result, CreateBranchResult)
    assert result.base_branch == "main"


def test_explicit_base_branch(tmp_path: Path) -> None:
    git = _git()
    git.create_branch(tmp_path, "local-base", "main")

    result = _create(git, tmp_path, "fix", "typo", base_branch="local-base")

    assert isinstance(result, CreateBranchResult)
    assert git.branch_head("fix/typo") == git.branch_head("local-base")


def test_existing_branch(tmp_path: Path) -> None:
    git = _git()
    git.create_branch(tmp_path, "feat/login", "main")

    result = _create(git, tmp_path, "feat", "login")

    assert isinstance(result, WorkflowError)
    assert result.error_type == "branch-exists"


def test_unknown_type(tmp_path: Path) -> None:
    result = _create(_git(), tmp_path, "chore", "x")

    assert isinstance(result, WorkflowError)
    assert result.error_type == "invalid-input"


def test_unusable_suffix(tmp_path: Path) -> None:
    result = _create(_git(), tmp_path, "feat", "???")

    assert isinstance(result, WorkflowError)
    assert result.error_type == "invalid-input"


def test_missing_base(tmp_path: Path) -> None:
    git = _git()

    result = _create(git, tmp_path, "feat", "x", base_branch="nope")

    assert isinstance(result, WorkflowError)
    assert result.error_type == "ref-not-found"
    assert git.checkouts == []
