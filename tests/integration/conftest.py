"""Real repositories for integration tests.

`work_repo` is a clone-like working repository with a bare `origin`:

    main, staging   ->  "initial commit"
    feat/login      ->  "initial commit" + "feat: add form" + "fix: validation"

All three branches are pushed and feat/login is checked out.
"""

import subprocess
from pathlib import Path

import pytest


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-m", message)


def log_messages(repo: Path, revision_range: str) -> list[str]:
    """Subjects of revision_range, oldest first."""
    output = git(repo, "log", "--reverse", "--format=%s", revision_range)
    return output.splitlines()


@pytest.fixture
def origin(tmp_path: Path) -> Path:
    path = tmp_path / "origin.git"
    subprocess.run(
        ["git", "init", "--bare", "-b", "main", str(path)], check=True, capture_output=True
    )
    return path


@pytest.fixture
def work_repo(tmp_path: Path, origin: Path) -> Path:
    repo = tmp_path / "work"
    repo.mkdir()
    git(repo, "init", "-b", "main")
    git(repo, "config", "user.email", "dev@example.com")
    git(repo, "config", "user.name", "Dev")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "remote", "add", "origin", str(origin))

    commit_file(repo, "README.md", "# widgets\n", "initial commit")
    git(repo, "push", "origin", "main")
    git(repo, "branch", "staging")
    git(repo, "push", "origin", "staging")

    git(repo, "checkout", "-b", "feat/login")
    commit_file(repo, "login.py", "def login():\n    pass\n", "feat: add form")
    commit_file(repo, "login.py", "def login(email):\n    assert email\n", "fix: validation")
    git(repo, "push", "--set-upstream", "origin", "feat/login")
    return repo
