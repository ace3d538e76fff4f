"""Shell subprocess execution with timeout, reaping and output passthrough.

The test-runner command is a user-supplied shell template, so it runs
through the shell.  The child gets its own session so that a timeout or a
cancelled run can kill the whole process group (the shell and everything it
started), and the process is always awaited before returning.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_POSIX = sys.platform != "win32"


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    """Exit code of the process (negative when killed by a signal)."""

    success: bool
    """True if returncode is 0."""

    timed_out: bool = False
    """True if the process was terminated due to timeout."""

    duration_ms: float = 0.0
    """Actual duration of execution in milliseconds."""

    @property
    def killed_by_signal(self) -> bool:
        """True when the process ended abnormally on a signal."""
        return self.returncode < 0


class SubprocessError(Exception):
    """Exception raised when a subprocess cannot be started."""

    def __init__(self, message: str, command: str) -> None:
        """Initialize with error message and the command that failed.

        Args:
            message: Error description.
            command: The shell command line.
        """
        super().__init__(message)
        self.command = command


def _kill(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        if _POSIX:
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()


async def _reap(process: asyncio.subprocess.Process) -> None:
    _kill(process)
    await process.wait()


async def run_shell(
    command: str,
    *,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
    show_output: bool = False,
) -> SubprocessResult:
    """Run *command* through the shell and wait for it to exit.

    Args:
        command: Full shell command line.
        env: Complete environment for the child.  ``None`` inherits ours.
        timeout: Seconds before the process group is killed.  ``None`` or
            ``0`` waits indefinitely.
        show_output: Inherit stdout/stderr when True, discard them otherwise.

    Returns:
        SubprocessResult with exit code and metadata.

    Raises:
        SubprocessError: If the shell could not be spawned.
        ValueError: If command is empty or timeout is negative.
    """
    if not command.strip():
        raise ValueError("Command cannot be empty")
    if timeout is not None and timeout < 0:
        raise ValueError(f"Timeout must not be negative, got {timeout}")

    stream = None if show_output else asyncio.subprocess.DEVNULL
    logger.debug("Running subprocess: %s (timeout=%s)", command, timeout or "none")

    start_time = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=stream,
            stderr=stream,
            env=env,
            start_new_session=_POSIX,
        )
    except OSError as exc:
        raise SubprocessError(f"Failed to start process: {exc}", command) from exc

    timed_out = False
    try:
        await asyncio.wait_for(process.wait(), timeout=timeout or None)
    except TimeoutError:
        logger.warning("Subprocess timed out after %s seconds, killing it", timeout)
        timed_out = True
        await _reap(process)
    except asyncio.CancelledError:
        await asyncio.shield(_reap(process))
        raise

    duration_ms = (time.perf_counter() - start_time) * 1000
    returncode = process.returncode if process.returncode is not None else -1

    result = SubprocessResult(
        returncode=returncode,
        success=returncode == 0 and not timed_out,
        timed_out=timed_out,
        duration_ms=duration_ms,
    )
    logger.debug(
        "Subprocess completed: returncode=%d, duration=%.2fms, success=%s",
        returncode,
        duration_ms,
        result.success,
    )
    return result
