"""Cypress invocation for one worker.

Runs ``<command> --spec "<file>[,<file>...]"`` and maps the process outcome
to a :class:`WorkerResult`:

* exit code 0 -> ``SUCCEEDED``
* any other exit code -> ``FAILED`` (code preserved)
* spawn failure, timeout or death by signal -> ``ERRORED``
"""

from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING

from cyparallel.sharding.models import WorkerResult, WorkerStatus
from cyparallel.utils.subprocess_runner import SubprocessError, run_shell

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


def build_command(command: str, files: Sequence[Path]) -> str:
    """Append the ``--spec`` argument listing *files* to *command*."""
    spec = ",".join(str(f) for f in files)
    return f'{command} --spec "{spec}"'


def build_env(display: int | None) -> dict[str, str] | None:
    """Child environment: ours plus ``DISPLAY`` when a virtual display is used."""
    if display is None:
        return None
    return {**os.environ, "DISPLAY": f":{display}"}


async def run_spec(
    files: Sequence[Path],
    *,
    worker_index: int,
    command: str,
    display: int | None = None,
    show_output: bool = False,
    timeout: float = 0.0,
) -> WorkerResult:
    """Run the test runner once against *files*.

    Never raises for runner problems; they are reported as an ``ERRORED``
    result so sibling workers are unaffected.
    """
    worker_id = worker_index + 1
    logger.info(
        "Worker %d: starting test runner for %d file(s)",
        worker_id,
        len(files),
    )
    for path in files:
        logger.debug("Worker %d:   - %s", worker_id, path)

    full_command = build_command(command, files)
    start = time.perf_counter()
    try:
        result = await run_shell(
            full_command,
            env=build_env(display),
            timeout=timeout or None,
            show_output=show_output,
        )
    except SubprocessError as exc:
        logger.error("Worker %d: could not start test runner: %s", worker_id, exc)
        return WorkerResult(
            worker_index=worker_index,
            status=WorkerStatus.ERRORED,
            files_run=len(files),
            duration_ms=(time.perf_counter() - start) * 1000,
            message=str(exc),
        )

    if result.timed_out:
        message = f"timed out after {timeout:g}s"
        logger.error("Worker %d: test runner %s and was killed", worker_id, message)
        status = WorkerStatus.ERRORED
    elif result.killed_by_signal:
        message = f"killed by signal {-result.returncode}"
        logger.error("Worker %d: test runner was %s", worker_id, message)
        status = WorkerStatus.ERRORED
    elif result.success:
        message = ""
        logger.info("Worker %d: test runner completed successfully", worker_id)
        status = WorkerStatus.SUCCEEDED
    else:
        message = ""
        logger.error(
            "Worker %d: test runner failed with exit code %d", worker_id, result.returncode
        )
        status = WorkerStatus.FAILED

    return WorkerResult(
        worker_index=worker_index,
        status=status,
        exit_code=None if result.timed_out else result.returncode,
        files_run=len(files),
        duration_ms=result.duration_ms,
        message=message,
    )
