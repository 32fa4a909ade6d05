"""Subprocess helpers shared by the real gateway implementations.

All git invocations that must succeed go through run_subprocess_with_context,
which turns a non-zero exit into a RuntimeError naming the failed operation.
"""

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


def copied_env_for_git_subprocess() -> dict[str, str]:
    """Copy the current environment with interactive git prompts disabled.

    A credential prompt on a network operation would otherwise hang the run
    with no terminal attached.
    """
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def _format_failure(operation_context: str, result: subprocess.CompletedProcess[str]) -> str:
    lines = [f"Failed to {operation_context} (exit code {result.returncode})"]
    stderr = (result.stderr or "").strip()
    stdout = (result.stdout or "").strip()
    if stderr:
        lines.append(f"stderr: {stderr}")
    if stdout:
        lines.append(f"stdout: {stdout}")
    return "\n".join(lines)


def run_subprocess_with_context(
    *,
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path,
    check: bool = True,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
    input: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command, raising RuntimeError with context when it fails.

    Args:
        cmd: Command and arguments
        operation_context: Short description of what the command does, used in
            error messages (e.g. "push tag 'v1' to remote 'origin'")
        cwd: Working directory
        check: If True, a non-zero exit raises RuntimeError
        timeout: Optional timeout in seconds
        env: Optional environment for the child process
        input: Optional text passed on stdin

    Returns:
        The completed process with captured text output

    Raises:
        RuntimeError: If the command exits non-zero (when check=True), cannot be
            started, or times out
    """
    started = time.monotonic()
    try:
        result = subprocess.run(
            list(cmd),
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            env=dict(env) if env is not None else None,
            input=input,
        )
    except FileNotFoundError as e:
        raise RuntimeError(f"Failed to {operation_context}: {cmd[0]} not found") from e
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"Failed to {operation_context}: timed out after {timeout}s") from e
    finally:
        logger.debug("%s (%.2fs)", " ".join(cmd), time.monotonic() - started)

    if check and result.returncode != 0:
        raise RuntimeError(_format_failure(operation_context, result))
    return result
