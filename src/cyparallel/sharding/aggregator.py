"""Reduce worker results to a single verdict."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cyparallel.sharding.models import DistributionMode, RunSummary, WorkerStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cyparallel.sharding.models import WorkerResult

logger = logging.getLogger(__name__)


def _log_worker(result: WorkerResult) -> None:
    worker_id = result.worker_index + 1
    if result.status is WorkerStatus.SUCCEEDED:
        logger.info("Worker %d completed all runs successfully.", worker_id)
    elif result.status is WorkerStatus.ERRORED:
        logger.error("Worker %d errored: %s", worker_id, result.message or "unknown error")
    elif result.exit_code is not None:
        logger.error(
            "Worker %d had at least one failed run (exit code %d).", worker_id, result.exit_code
        )
    else:
        logger.error("Worker %d had at least one failed run.", worker_id)

    for path in result.failed_files:
        logger.error("Worker %d:   failed: %s", worker_id, path)


def aggregate_results(
    results: Iterable[WorkerResult],
    *,
    total_files: int = 0,
    mode: DistributionMode = DistributionMode.WEIGHTED,
) -> RunSummary:
    """Combine all worker outcomes into one :class:`RunSummary`.

    The run fails if any worker failed or errored.  This never raises; the
    failure surfaces only as ``RunSummary.exit_code``.
    """
    ordered = tuple(sorted(results, key=lambda r: r.worker_index))
    summary = RunSummary(results=ordered, total_files=total_files, mode=mode)

    for result in ordered:
        _log_worker(result)

    if summary.success:
        logger.info("All tests completed successfully.")
    else:
        logger.error(
            "%d of %d worker(s) failed.", len(summary.failed_workers), len(summary.results)
        )
    return summary
