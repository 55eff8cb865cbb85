"""RealGit and the workflows built on it, against real repositories."""

from pathlib import Path

import pytest

from prflow.changes import NO_CODE_DIFF, generate_change_bundle
from prflow.config import PrflowConfig
from prflow.context import PrflowContext
from prflow.gateway.git.abc import VcsCommandFailed
from prflow.gateway.git.real import RealGit
from prflow.gateway.time.real import RealTime
from prflow.refs import RefResolver
from prflow.rewrite.engine import HistoryRewriteEngine
from prflow.rewrite.types import ReplaceMessagesResult, RewriteError, SquashResult
from prflow.workflow.commits import get_commit_messages
from prflow.workflow.types import CommitMessagesResult, WorkflowError
from tests.integration.conftest import commit_file, git, log_messages

pytestmark = pytest.mark.integration

FEATURE = "feat/login"
TARGET = "staging"


class PushRejectingGit(RealGit):
    def push(
        self,
        cwd: Path,
        remote: str,
        branch: str,
        *,
        force: bool = False,
        set_upstream: bool = False,
    ) -> None:
        raise VcsCommandFailed(["git", "push", remote, branch], "! [remote rejected]")


def _engine(real_git: RealGit) -> HistoryRewriteEngine:
    config = PrflowConfig()
    return HistoryRewriteEngine(real_git, RefResolver(real_git), config, RealTime())


def _temp_branches(repo: Path) -> str:
    return git(repo, "branch", "--list", "temp/*")


def _single_branch_clone(tmp_path: Path, origin: Path) -> Path:
    clone = tmp_path / "clone"
    git(tmp_path, "clone", "--single-branch", "--branch", FEATURE, str(origin), str(clone))
    return clone


class TestRealGitQueries:
    def test_ref_existence(self, work_repo: Path) -> None:
        real_git = RealGit()

        assert real_git.local_branch_exists(work_repo, FEATURE) is True
        assert real_git.local_branch_exists(work_repo, "nope") is False
        assert real_git.remote_branch_exists(work_repo, "origin", TARGET) is True
        assert real_git.remote_branch_exists(work_repo, "origin", "nope") is False

    def test_current_branch_and_root(self, work_repo: Path) -> None:
        real_git = RealGit()

        assert real_git.get_current_branch(work_repo) == FEATURE
        assert real_git.get_repository_root(work_repo).resolve() == work_repo.resolve()

    def test_merge_base_without_common_history(self, work_repo: Path) -> None:
        git(work_repo, "checkout", "--orphan", "unrelated")
        commit_file(work_repo, "other.txt", "x\n", "unrelated root")

        assert RealGit().merge_base(work_repo, "unrelated", "main") is None

    def test_failures_carry_stderr(self, work_repo: Path) -> None:
        with pytest.raises(VcsCommandFailed) as exc_info:
            RealGit().rev_parse(work_repo, "does-not-exist")

        assert exc_info.value.command[:2] == ["git", "rev-parse"]


class TestChangeBundle:
    def test_bundle_does_not_dirty_the_tree(self, work_repo: Path) -> None:
        real_git = RealGit()

        bundle = generate_change_bundle(
            real_git, RefResolver(real_git), RealTime(), work_repo, TARGET, FEATURE
        )

        assert bundle.commit_messages == ("feat: add form", "fix: validation")
        assert "login.py" in bundle.diff_summary
        assert "+def login(email):" in bundle.full_diff
        assert real_git.status_porcelain(work_repo) == ""

    def test_non_utf8_file_keeps_the_full_diff(self, work_repo: Path) -> None:
        (work_repo / "legacy.txt").write_bytes(b"caf\xe9\n")
        git(work_repo, "add", "legacy.txt")
        git(work_repo, "commit", "-m", "chore: add legacy file")
        real_git = RealGit()

        bundle = generate_change_bundle(
            real_git, RefResolver(real_git), RealTime(), work_repo, TARGET, FEATURE
        )

        assert bundle.full_diff != NO_CODE_DIFF
        assert "+caf\ufffd" in bundle.full_diff
        assert "legacy.txt" in bundle.diff_summary
        assert bundle.commit_messages[-1] == "chore: add legacy file"


class TestSingleBranchClone:
    """A --single-branch clone has no tracking ref for the target branch."""

    def test_commit_messages_against_an_untracked_target(
        self, tmp_path: Path, work_repo: Path, origin: Path
    ) -> None:
        clone = _single_branch_clone(tmp_path, origin)
        ctx = PrflowContext.for_test(git=RealGit(), time=RealTime(), repo_root=clone)

        result = get_commit_messages(ctx, clone, FEATURE, "main")

        assert isinstance(result, CommitMessagesResult)
        assert result.commits == ["feat: add form", "fix: validation"]
        assert git(clone, "rev-parse", "--verify", "refs/remotes/origin/main")

    def test_change_bundle_against_an_untracked_target(
        self, tmp_path: Path, work_repo: Path, origin: Path
    ) -> None:
        clone = _single_branch_clone(tmp_path, origin)
        real_git = RealGit()

        bundle = generate_change_bundle(
            real_git, RefResolver(real_git), RealTime(), clone, TARGET, FEATURE
        )

        assert bundle.commit_messages == ("feat: add form", "fix: validation")

    def test_missing_target_is_reported_as_not_found(
        self, tmp_path: Path, work_repo: Path, origin: Path
    ) -> None:
        clone = _single_branch_clone(tmp_path, origin)
        ctx = PrflowContext.for_test(git=RealGit(), time=RealTime(), repo_root=clone)

        result = get_commit_messages(ctx, clone, FEATURE, "release")

        assert isinstance(result, WorkflowError)
        assert result.error_type == "ref-not-found"


class TestReplaceCommitMessages:
    def test_rewrites_local_and_remote(self, work_repo: Path) -> None:
        original_tip = git(work_repo, "rev-parse", FEATURE)

        result = _engine(RealGit()).replace_commit_messages(
            work_repo,
            FEATURE,
            TARGET,
            ["feat: add login form\n\nWith an email field", "fix: validation"],
        )

        assert isinstance(result, ReplaceMessagesResult)
        assert result.changed == 1
        assert log_messages(work_repo, f"{TARGET}..{FEATURE}") == [
            "feat: add login form",
            "fix: validation",
        ]
        assert git(work_repo, "log", "-1", "--format=%b", f"{FEATURE}~1") == "With an email field"
        git(work_repo, "fetch", "origin")
        assert git(work_repo, "rev-parse", f"origin/{FEATURE}") == git(
            work_repo, "rev-parse", FEATURE
        )
        assert result.backup_ref is not None
        assert git(work_repo, "rev-parse", f"{result.backup_ref}^{{commit}}") == original_tip
        assert _temp_branches(work_repo) == ""
        assert git(work_repo, "for-each-ref", "refs/original") == ""
        assert git(work_repo, "branch", "--show-current") == FEATURE

    def test_second_run_is_a_noop(self, work_repo: Path) -> None:
        engine = _engine(RealGit())
        messages = ["feat: add login form", "fix: email validation"]
        engine.replace_commit_messages(work_repo, FEATURE, TARGET, messages)
        tip = git(work_repo, "rev-parse", FEATURE)

        second = engine.replace_commit_messages(work_repo, FEATURE, TARGET, messages)

        assert isinstance(second, ReplaceMessagesResult)
        assert second.replaced == 0
        assert git(work_repo, "rev-parse", FEATURE) == tip

    def test_rejected_push_restores_branch(self, work_repo: Path) -> None:
        original_tip = git(work_repo, "rev-parse", FEATURE)

        result = _engine(PushRejectingGit()).replace_commit_messages(
            work_repo, FEATURE, TARGET, ["feat: x", "fix: y"]
        )

        assert isinstance(result, RewriteError)
        assert result.error_type == "rewrite-failed"
        assert git(work_repo, "rev-parse", FEATURE) == original_tip
        assert git(work_repo, "branch", "--show-current") == FEATURE
        assert git(work_repo, "status", "--porcelain") == ""
        assert _temp_branches(work_repo) == ""
        assert result.details["backup_ref"] in git(work_repo, "tag", "--list", "backup/*")

    def test_dirty_tree_is_refused(self, work_repo: Path) -> None:
        (work_repo / "login.py").write_text("changed\n", encoding="utf-8")

        result = _engine(RealGit()).replace_commit_messages(
            work_repo, FEATURE, TARGET, ["feat: x", "fix: y"]
        )

        assert isinstance(result, RewriteError)
        assert result.error_type == "dirty-working-tree"
        assert (work_repo / "login.py").read_text(encoding="utf-8") == "changed\n"


class TestSquashCommits:
    def test_squashes_and_keeps_the_tree(self, work_repo: Path) -> None:
        tree_before = git(work_repo, "rev-parse", f"{FEATURE}^{{tree}}")

        result = _engine(RealGit()).squash_commits(
            work_repo, FEATURE, TARGET, "feat: login\n\nForm and validation"
        )

        assert isinstance(result, SquashResult)
        assert result.commit_count == 2
        assert log_messages(work_repo, f"{TARGET}..{FEATURE}") == ["feat: login"]
        assert git(work_repo, "rev-parse", f"{FEATURE}^{{tree}}") == tree_before
        git(work_repo, "fetch", "origin")
        assert log_messages(work_repo, f"origin/{TARGET}..origin/{FEATURE}") == ["feat: login"]
        assert _temp_branches(work_repo) == ""

    def test_single_commit_is_amended(self, work_repo: Path) -> None:
        engine = _engine(RealGit())
        engine.squash_commits(work_repo, FEATURE, TARGET, "feat: login")

        result = engine.squash_commits(work_repo, FEATURE, TARGET, "feat: login v2")

        assert isinstance(result, SquashResult)
        assert result.squashed is True
        assert log_messages(work_repo, f"{TARGET}..{FEATURE}") == ["feat: login v2"]

    def test_rejected_push_restores_branch(self, work_repo: Path) -> None:
        original_tip = git(work_repo, "rev-parse", FEATURE)

        result = _engine(PushRejectingGit()).squash_commits(
            work_repo, FEATURE, TARGET, "feat: login"
        )

        assert isinstance(result, RewriteError)
        assert git(work_repo, "rev-parse", FEATURE) == original_tip
        assert git(work_repo, "status", "--porcelain") == ""
        assert _temp_branches(work_repo) == ""
