from pathlib import Path

from prflow.scratch import clear_repo_scratch, repo_scratch_dir, write_scratch_file


def test_chunks_are_written_in_order(tmp_path: Path) -> None:
    path = write_scratch_file(tmp_path, "out.txt", iter(["a", "", "b", "c"]))

    assert path.read_text(encoding="utf-8") == "abc"


def test_folder_ignores_itself(tmp_path: Path) -> None:
    write_scratch_file(tmp_path, "out.txt", "x")

    assert (repo_scratch_dir(tmp_path) / ".gitignore").read_text(encoding="utf-8") == "*\n"


def test_clear_removes_the_folder(tmp_path: Path) -> None:
    write_scratch_file(tmp_path, "out.txt", "x")

    clear_repo_scratch(tmp_path)
    clear_repo_scratch(tmp_path)

    assert not repo_scratch_dir(tmp_path).exists()
