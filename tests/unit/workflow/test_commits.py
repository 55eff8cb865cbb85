from pathlib import Path

from prflow.context import PrflowContext
from prflow.gateway.git.fake import FakeGit, linear_commits
from prflow.workflow.commits import get_commit_contents, get_commit_messages
from prflow.workflow.types import CommitContentsResult, CommitMessagesResult, WorkflowError
from tests.builders import FEATURE, TARGET, feature_git


def _ctx(git: FakeGit, tmp_path: Path) -> PrflowContext:
    return PrflowContext.for_test(git=git, repo_root=tmp_path)


class TestGetCommitMessages:
    def test_full_messages_oldest_first(self, tmp_path: Path) -> None:
        git = feature_git(["feat: add form\n\nWith validation", "fix: typo"])

        result = get_commit_messages(_ctx(git, tmp_path), tmp_path, FEATURE, TARGET)

        assert isinstance(result, CommitMessagesResult)
        assert result.commits == ["feat: add form\n\nWith validation", "fix: typo"]

    def test_remote_target_is_preferred(self, tmp_path: Path) -> None:
        # Local staging is stale; the feature branch was cut from the remote one
        trunk = linear_commits(["c0", "c1"])
        feature = linear_commits(["feat: a"], parent=trunk[1].sha)
        git = FakeGit(
            commits=[*trunk, *feature],
            local_branches={TARGET: trunk[0].sha, FEATURE: feature[0].sha},
            remote_branches={TARGET: trunk[1].sha},
            current_branch=FEATURE,
        )

        result = get_commit_messages(_ctx(git, tmp_path), tmp_path, FEATURE, TARGET)

        assert isinstance(result, CommitMessagesResult)
        assert result.commits == ["feat: a"]

    def test_untracked_remote_target_is_fetched_before_use(self, tmp_path: Path) -> None:
        # As in a single-branch clone: origin/staging only exists once fetched
        trunk = linear_commits(["c0", "c1"])
        feature = linear_commits(["feat: a"], parent=trunk[1].sha)
        git = FakeGit(
            commits=[*trunk, *feature],
            local_branches={TARGET: trunk[0].sha, FEATURE: feature[0].sha},
            remote_branches={TARGET: trunk[1].sha},
            untracked_remote_branches={TARGET},
            current_branch=FEATURE,
        )

        result = get_commit_messages(_ctx(git, tmp_path), tmp_path, FEATURE, TARGET)

        assert isinstance(result, CommitMessagesResult)
        assert result.commits == ["feat: a"]

    def test_head_only_on_remote(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"])
        git.checkout_branch(tmp_path, "main")
        git.delete_branch(tmp_path, FEATURE)

        result = get_commit_messages(_ctx(git, tmp_path), tmp_path, FEATURE, TARGET)

        assert isinstance(result, CommitMessagesResult)
        assert result.commits == ["feat: a"]

    def test_empty_range(self, tmp_path: Path) -> None:
        result = get_commit_messages(
            _ctx(feature_git([]), tmp_path), tmp_path, FEATURE, TARGET
        )

        assert isinstance(result, CommitMessagesResult)
        assert result.commits == []

    def test_missing_target_is_named(self, tmp_path: Path) -> None:
        result = get_commit_messages(
            _ctx(feature_git(["feat: a"]), tmp_path), tmp_path, FEATURE, "nope"
        )

        assert isinstance(result, WorkflowError)
        assert result.error_type == "ref-not-found"
        assert result.details == {"ref": "nope"}

    def test_missing_current_is_named(self, tmp_path: Path) -> None:
        result = get_commit_messages(
            _ctx(feature_git(["feat: a"]), tmp_path), tmp_path, "feat/nope", TARGET
        )

        assert isinstance(result, WorkflowError)
        assert result.details == {"ref": "feat/nope"}


class TestGetCommitContents:
    def test_writes_bundle(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a", "fix: b"])

        result = get_commit_contents(_ctx(git, tmp_path), tmp_path, FEATURE, TARGET)

        assert isinstance(result, CommitContentsResult)
        assert result.commit_count == 2
        assert Path(result.changes_file).read_text(encoding="utf-8").startswith(
            "=== COMMITS ===\nfeat: a"
        )

    def test_target_must_be_on_remote(self, tmp_path: Path) -> None:
        git = feature_git(["feat: a"])

        result = get_commit_contents(_ctx(git, tmp_path), tmp_path, FEATURE, "local-only")

        assert isinstance(result, WorkflowError)
        assert result.error_type == "ref-not-found"
