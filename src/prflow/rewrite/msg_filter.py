"""Scratch files consumed by git while a rewrite runs.

Both helpers are context managers: the files exist only inside the `with`
block and are removed on exit whether or not git succeeded.
"""

import json
import shlex
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.scratch import write_system_scratch_file

# Run by `git filter-branch --msg-filter` once per commit: the original message
# arrives on stdin, the commit being rewritten in $GIT_COMMIT. Commits present
# in the mapping get their replacement, all others pass through byte-for-byte.
MSG_FILTER_SCRIPT = """\
import json
import os
import sys

with open(sys.argv[1], encoding="utf-8") as f:
    mapping = json.load(f)

original = sys.stdin.buffer.read()
replacement = mapping.get(os.environ.get("GIT_COMMIT", ""))
if replacement is None:
    sys.stdout.buffer.write(original)
else:
    sys.stdout.buffer.write(replacement.rstrip("\\n").encode("utf-8") + b"\\n")
"""


def _remove(path: Path) -> None:
    best_effort(lambda: path.unlink(missing_ok=True), description=f"remove {path}")


@contextmanager
def message_filter_command(mapping: dict[str, str], timestamp: int) -> Iterator[str]:
    """Write the mapping and filter script; yield the --msg-filter command."""
    mapping_path = write_system_scratch_file(
        f"commit-msg-mapping-{timestamp}.json", json.dumps(mapping, indent=2)
    )
    script_path = write_system_scratch_file(f"msg-filter-{timestamp}.py", MSG_FILTER_SCRIPT)
    try:
        yield " ".join(
            shlex.quote(part) for part in (sys.executable, str(script_path), str(mapping_path))
        )
    finally:
        _remove(mapping_path)
        _remove(script_path)


@contextmanager
def commit_message_file(message: str, timestamp: int) -> Iterator[Path]:
    """Write a commit message to a file suitable for `git commit -F`."""
    path = write_system_scratch_file(f"commit-msg-{timestamp}.txt", message)
    try:
        yield path
    finally:
        _remove(path)
