"""Parallel test execution: weighted bucketing and polling strategies.

Weighted mode estimates a weight per file, plans one balanced bucket per
worker up front and runs each non-empty bucket as a single test-runner
invocation.  Polling mode starts a fixed number of worker loops that pull
one file at a time from a shared :class:`WorkQueue` until it is empty.

All workers run concurrently on one event loop; a failing worker never
cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from cyparallel.errors import DiscoveryError
from cyparallel.runners.cypress_runner import run_spec
from cyparallel.sharding.aggregator import aggregate_results
from cyparallel.sharding.models import (
    DistributionMode,
    WorkerResult,
    WorkerStatus,
)
from cyparallel.sharding.planner import log_bucket_plan, plan_buckets
from cyparallel.sharding.weights import estimate_weights
from cyparallel.sharding.work_queue import WorkQueue
from cyparallel.utils.xvfb import XvfbError, virtual_display

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from pathlib import Path

    from cyparallel.config import RunnerConfig
    from cyparallel.parsing.declarations import DeclarationParser
    from cyparallel.sharding.models import Bucket, RunSummary

    SpecRunner = Callable[..., Awaitable[WorkerResult]]

logger = logging.getLogger(__name__)


@dataclass
class ParallelRunConfig:
    """Configuration for parallel test execution."""

    workers: int = 1
    """Number of concurrent workers."""

    command: str = "npx cypress run"
    """Test-runner command template."""

    mode: DistributionMode = DistributionMode.WEIGHTED
    """Weighted bucketing or polling."""

    base_weight: int = 1
    """Weight of every file regardless of its test count."""

    weight_per_test: int = 1
    """Weight added per active test case."""

    base_display_number: int = 99
    """Display number of worker 0."""

    use_xvfb: bool = False
    """Start a virtual display per worker."""

    show_runner_output: bool = False
    """Inherit the runner's stdout/stderr."""

    timeout: float = 0.0
    """Per-invocation timeout in seconds (0 = none)."""

    @classmethod
    def from_config(cls, config: RunnerConfig) -> ParallelRunConfig:
        return cls(
            workers=config.workers,
            command=config.command,
            mode=config.mode,
            base_weight=config.base_weight,
            weight_per_test=config.weight_per_test,
            base_display_number=config.base_display_number,
            use_xvfb=config.use_xvfb,
            show_runner_output=config.cypress_log,
            timeout=config.timeout,
        )


class ProgressTracker:
    """Counts completed test files and logs overall progress."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.completed = 0

    def advance(self, count: int = 1) -> None:
        self.completed += count
        if self.completed >= self.total:
            return
        remaining = self.total - self.completed
        percentage = self.completed / self.total * 100
        logger.info(
            "Progress: %d/%d test files completed (%.2f%% done). "
            "%d test file(s) remaining.",
            self.completed,
            self.total,
            percentage,
            remaining,
        )


def _errored(worker_index: int, exc: Exception, files_run: int = 0) -> WorkerResult:
    logger.error("Worker %d errored: %s", worker_index + 1, exc)
    return WorkerResult(
        worker_index=worker_index,
        status=WorkerStatus.ERRORED,
        files_run=files_run,
        message=str(exc),
    )


# ── Weighted bucketing ───────────────────────────────────────────


def prepare_buckets(
    files: Sequence[Path],
    config: ParallelRunConfig,
    *,
    parser: DeclarationParser | None = None,
) -> list[Bucket]:
    """Estimate weights for *files* and plan one bucket per worker.

    Raises:
        DiscoveryError: If no file could be weighted.
    """
    weighted = estimate_weights(
        files,
        base_weight=config.base_weight,
        weight_per_test=config.weight_per_test,
        parser=parser,
    )
    if not weighted:
        raise DiscoveryError("None of the discovered test files could be weighted")
    if len(weighted) < len(files):
        logger.warning(
            "%d test file(s) excluded from the run because their weight could not be estimated",
            len(files) - len(weighted),
        )

    buckets = plan_buckets(config.workers, weighted)
    log_bucket_plan(buckets)
    return buckets


async def _run_bucket(
    bucket: Bucket,
    config: ParallelRunConfig,
    runner: SpecRunner,
    progress: ProgressTracker,
) -> WorkerResult:
    display_number = config.base_display_number + bucket.index
    logger.info(
        "Starting worker %d with %d test file(s).", bucket.index + 1, len(bucket)
    )
    start = time.perf_counter()
    try:
        async with virtual_display(display_number, enabled=config.use_xvfb) as display:
            result = await runner(
                bucket.files,
                worker_index=bucket.index,
                command=config.command,
                display=display,
                show_output=config.show_runner_output,
                timeout=config.timeout,
            )
    except XvfbError as exc:
        result = _errored(bucket.index, exc)

    if not result.success and not result.failed_files:
        # The bucket ran as one invocation; its files share the outcome.
        result = replace(result, failed_files=bucket.files)
    progress.advance(len(bucket))
    logger.debug(
        "Worker %d finished in %.2fs", bucket.index + 1, time.perf_counter() - start
    )
    return result


async def run_buckets(
    buckets: Sequence[Bucket],
    config: ParallelRunConfig,
    *,
    runner: SpecRunner = run_spec,
) -> list[WorkerResult]:
    """Run every non-empty bucket concurrently and wait for all of them."""
    active = [b for b in buckets if not b.is_empty]
    progress = ProgressTracker(sum(len(b) for b in active))
    return list(
        await asyncio.gather(*(_run_bucket(b, config, runner, progress) for b in active))
    )


async def run_weighted(
    files: Sequence[Path],
    config: ParallelRunConfig,
    *,
    parser: DeclarationParser | None = None,
    runner: SpecRunner = run_spec,
) -> list[WorkerResult]:
    """Weighted bucketing mode: plan buckets, then run one worker per bucket."""
    buckets = prepare_buckets(files, config, parser=parser)
    return await run_buckets(buckets, config, runner=runner)


# ── Polling ──────────────────────────────────────────────────────


async def _poll_worker(
    worker_index: int,
    queue: WorkQueue,
    config: ParallelRunConfig,
    runner: SpecRunner,
    progress: ProgressTracker,
) -> WorkerResult:
    display_number = config.base_display_number + worker_index
    failed: list[Path] = []
    failure_code: int | None = None
    saw_failure = False
    saw_error = False
    files_run = 0
    start = time.perf_counter()

    try:
        async with virtual_display(display_number, enabled=config.use_xvfb) as display:
            while (path := await queue.take()) is not None:
                result = await runner(
                    [path],
                    worker_index=worker_index,
                    command=config.command,
                    display=display,
                    show_output=config.show_runner_output,
                    timeout=config.timeout,
                )
                files_run += 1
                progress.advance()
                if result.success:
                    continue
                failed.append(path)
                if result.status is WorkerStatus.ERRORED:
                    saw_error = True
                else:
                    saw_failure = True
                    failure_code = result.exit_code
    except XvfbError as exc:
        return _errored(worker_index, exc, files_run)

    if saw_failure:
        status = WorkerStatus.FAILED
    elif saw_error:
        status = WorkerStatus.ERRORED
    else:
        status = WorkerStatus.SUCCEEDED

    return WorkerResult(
        worker_index=worker_index,
        status=status,
        exit_code=failure_code if saw_failure else (None if saw_error else 0),
        files_run=files_run,
        failed_files=tuple(failed),
        duration_ms=(time.perf_counter() - start) * 1000,
        message=f"{len(failed)} of {files_run} file(s) failed" if failed else "",
    )


async def run_polling(
    files: Sequence[Path],
    config: ParallelRunConfig,
    *,
    runner: SpecRunner = run_spec,
) -> list[WorkerResult]:
    """Polling mode: ``min(workers, len(files))`` loops drain a shared queue."""
    queue = WorkQueue(files)
    worker_count = min(config.workers, len(files))
    if worker_count < config.workers:
        logger.info("Only %d test file(s); starting %d worker(s)", len(files), worker_count)
    progress = ProgressTracker(queue.total)
    return list(
        await asyncio.gather(
            *(_poll_worker(i, queue, config, runner, progress) for i in range(worker_count))
        )
    )


# ── Entry point ──────────────────────────────────────────────────


async def run_parallel(
    files: Sequence[Path],
    config: ParallelRunConfig,
    *,
    parser: DeclarationParser | None = None,
    runner: SpecRunner = run_spec,
    on_plan: Callable[[list[Bucket]], None] | None = None,
) -> RunSummary:
    """Run *files* with the configured strategy and aggregate the outcome.

    Args:
        files: Discovered test files.
        config: Execution settings.
        parser: Declaration parser for weight estimation (weighted mode).
        runner: Coroutine that runs one invocation; defaults to Cypress.
        on_plan: Called with the bucket plan before workers start
            (weighted mode only).

    Raises:
        DiscoveryError: In weighted mode, if no file could be weighted.
    """
    if config.mode is DistributionMode.POLLING:
        logger.info("Running in Polling Mode.")
        results = await run_polling(files, config, runner=runner)
        scheduled = len(files)
    else:
        logger.info("Running in Weighted Bucketing Mode.")
        buckets = prepare_buckets(files, config, parser=parser)
        if on_plan is not None:
            on_plan(buckets)
        results = await run_buckets(buckets, config, runner=runner)
        scheduled = sum(len(b) for b in buckets)

    return aggregate_results(results, total_files=scheduled, mode=config.mode)
