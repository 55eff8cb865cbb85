"""Scratch artifacts: change bundles, PR drafts and rewrite filter files.

Two locations are used:

- the repository scratch folder `<repo>/.tmp/prflow/`, holding files meant to
  be read by whoever drives the workflow (change bundles, PR body drafts);
- the system scratch folder `<tmpdir>/prflow/`, holding files only git needs
  while a rewrite runs (message mappings, msg-filter scripts, commit message
  files).

Every file is written once, read once and deleted on a best-effort basis.
"""

import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path

REPO_SCRATCH_DIR = Path(".tmp") / "prflow"
# Ignores everything in the folder, itself included, so scratch files never
# show up in `git status` or get removed by `git clean -fd`.
_SELF_IGNORE = "*\n"


def repo_scratch_dir(repo_root: Path) -> Path:
    return repo_root / REPO_SCRATCH_DIR


def ensure_repo_scratch_dir(repo_root: Path) -> Path:
    scratch = repo_scratch_dir(repo_root)
    scratch.mkdir(parents=True, exist_ok=True)
    gitignore = scratch / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text(_SELF_IGNORE, encoding="utf-8")
    return scratch


def system_scratch_dir() -> Path:
    return Path(tempfile.gettempdir()) / "prflow"


def write_scratch_file(repo_root: Path, name: str, content: str | Iterable[str]) -> Path:
    """Write a file into the repository scratch folder.

    Content may be a string or an iterable of string chunks; chunks are written
    as they are produced so large diffs are never joined in memory.

    Returns:
        Absolute path of the written file
    """
    path = ensure_repo_scratch_dir(repo_root) / name
    with path.open("w", encoding="utf-8") as f:
        if isinstance(content, str):
            f.write(content)
        else:
            for chunk in content:
                if chunk:
                    f.write(chunk)
    return path


def write_system_scratch_file(name: str, content: str) -> Path:
    """Write a file into the system scratch folder."""
    path = system_scratch_dir() / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def clear_repo_scratch(repo_root: Path) -> None:
    """Remove the repository scratch folder and everything in it."""
    scratch = repo_scratch_dir(repo_root)
    if scratch.exists():
        shutil.rmtree(scratch)
