"""Subprocess helpers shared by the git and GitHub gateways."""

import logging
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


def run_subprocess_with_context(
    cmd: Sequence[str],
    *,
    operation_context: str,
    cwd: Path | None = None,
    check: bool = True,
    input: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command, capturing text output.

    Output is decoded as UTF-8; undecodable bytes (e.g. a Latin-1 file in a
    diff) become U+FFFD instead of failing the whole read.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description used in error messages
        cwd: Working directory for the command
        check: Raise on a non-zero exit code when True
        input: Text passed to the process on stdin
        env: Full environment for the process (inherits the current one if None)
        timeout: Seconds before the process is killed

    Returns:
        The completed process (stdout/stderr as text)

    Raises:
        RuntimeError: If check is True and the command exits non-zero. The
            message carries the operation context, the command and its stderr.
        FileNotFoundError: If the executable is not installed
    """
    logger.debug("run: %s (cwd=%s)", " ".join(cmd), cwd)
    result = subprocess.run(
        list(cmd),
        cwd=cwd,
        capture_output=True,
        encoding="utf-8",
        errors="replace",
        check=False,
        input=input,
        env=dict(env) if env is not None else None,
        timeout=timeout,
    )
    if check and result.returncode != 0:
        stderr = result.stderr.strip()
        msg = f"Failed to {operation_context}: `{' '.join(cmd)}` exited with {result.returncode}"
        if stderr:
            msg += f"\n{stderr}"
        raise RuntimeError(msg)
    return result
