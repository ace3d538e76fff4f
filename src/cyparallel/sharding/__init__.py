"""Test distribution and parallel execution."""

from cyparallel.sharding.aggregator import aggregate_results
from cyparallel.sharding.discovery import discover_test_files, validate_directory
from cyparallel.sharding.models import (
    Bucket,
    DistributionMode,
    RunSummary,
    WeightedFile,
    WorkerResult,
    WorkerStatus,
)
from cyparallel.sharding.parallel_runner import (
    ParallelRunConfig,
    run_parallel,
    run_polling,
    run_weighted,
)
from cyparallel.sharding.planner import plan_buckets
from cyparallel.sharding.weights import count_active_tests, estimate_weight, estimate_weights
from cyparallel.sharding.work_queue import WorkQueue

__all__ = [
    "Bucket",
    "DistributionMode",
    "ParallelRunConfig",
    "RunSummary",
    "WeightedFile",
    "WorkQueue",
    "WorkerResult",
    "WorkerStatus",
    "aggregate_results",
    "count_active_tests",
    "discover_test_files",
    "estimate_weight",
    "estimate_weights",
    "plan_buckets",
    "run_parallel",
    "run_polling",
    "run_weighted",
    "validate_directory",
]
