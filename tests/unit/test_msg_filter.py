import json
import os
import shlex
import subprocess
from pathlib import Path

from prflow.rewrite.msg_filter import commit_message_file, message_filter_command


def _run_filter(command: str, commit: str, message: str) -> str:
    result = subprocess.run(
        command,
        shell=True,
        input=message.encode("utf-8"),
        capture_output=True,
        check=True,
        env={**os.environ, "GIT_COMMIT": commit},
    )
    return result.stdout.decode("utf-8")


def test_mapped_commits_get_their_replacement() -> None:
    with message_filter_command({"abc123": "feat: new message\n\nBody ✓"}, 1) as command:
        output = _run_filter(command, "abc123", "old message\n")

    assert output == "feat: new message\n\nBody ✓\n"


def test_unmapped_commits_pass_through_unchanged() -> None:
    with message_filter_command({"abc123": "feat: new"}, 2) as command:
        output = _run_filter(command, "def456", "keep me\r\n\nexactly\n")

    assert output == "keep me\r\n\nexactly\n"


def test_filter_files_are_removed_on_exit() -> None:
    with message_filter_command({"abc123": "feat: new"}, 3) as command:
        script, mapping = shlex.split(command)[-2:]
        assert json.loads(Path(mapping).read_text(encoding="utf-8")) == {"abc123": "feat: new"}

    assert not os.path.exists(script)
    assert not os.path.exists(mapping)


def test_commit_message_file_is_removed_on_exit() -> None:
    with commit_message_file("feat: squash", 4) as path:
        assert path.read_text(encoding="utf-8") == "feat: squash"

    assert not path.exists()
