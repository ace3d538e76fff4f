"""Data models shared by the planner, driver, and aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class DistributionMode(Enum):
    """How test files are handed to workers."""

    WEIGHTED = "weighted"
    POLLING = "polling"


class WorkerStatus(Enum):
    """Terminal state of a worker."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERRORED = "errored"


@dataclass(frozen=True)
class WeightedFile:
    """A test file together with its estimated execution cost."""

    file: Path
    """Path to the test file."""

    weight: int
    """Relative cost; always ``>= base_weight``."""

    active_tests: int = 0
    """Number of active test cases found in the file."""


@dataclass(frozen=True)
class Bucket:
    """A fixed group of test files run by a single worker invocation."""

    index: int
    """Zero-based bucket index (also the worker index)."""

    files: tuple[Path, ...] = ()
    """Files in assignment order."""

    weight: int = 0
    """Sum of the weights of ``files``."""

    def __len__(self) -> int:
        return len(self.files)

    @property
    def is_empty(self) -> bool:
        return not self.files


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of one worker over its whole lifetime."""

    worker_index: int
    """Zero-based worker index."""

    status: WorkerStatus
    """Terminal state."""

    exit_code: int | None = None
    """Exit code of the runner process, when one was observed."""

    files_run: int = 0
    """Number of test files this worker attempted."""

    failed_files: tuple[Path, ...] = ()
    """Files whose run failed or errored."""

    duration_ms: float = 0.0
    """Wall-clock time spent by the worker."""

    message: str = ""
    """Error description for ``ERRORED`` workers."""

    @property
    def success(self) -> bool:
        return self.status is WorkerStatus.SUCCEEDED


@dataclass(frozen=True)
class RunSummary:
    """Aggregated verdict of a whole run."""

    results: tuple[WorkerResult, ...] = field(default_factory=tuple)
    total_files: int = 0
    mode: DistributionMode = DistributionMode.WEIGHTED

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def failed_workers(self) -> list[WorkerResult]:
        return [r for r in self.results if not r.success]

    @property
    def failed_files(self) -> list[Path]:
        return [f for r in self.results for f in r.failed_files]

    @property
    def exit_code(self) -> int:
        """``0`` when every worker succeeded, ``1`` otherwise."""
        return 0 if self.success else 1
