"""Tests for the rich terminal reporter."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from cyparallel.reporters.terminal import CLIReporter, _format_duration
from cyparallel.sharding.models import (
    Bucket,
    DistributionMode,
    RunSummary,
    WorkerResult,
    WorkerStatus,
)


@pytest.fixture
def output() -> StringIO:
    return StringIO()


@pytest.fixture
def reporter(output: StringIO) -> CLIReporter:
    return CLIReporter(Console(file=output, width=120, color_system=None))


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0.3, "0.3s"), (12.0, "12.0s"), (90.0, "1.5m")],
)
def test_format_duration(seconds: float, expected: str) -> None:
    assert _format_duration(seconds) == expected


def test_bucket_plan(reporter: CLIReporter, output: StringIO) -> None:
    reporter.print_bucket_plan(
        [
            Bucket(index=0, files=(Path("a.cy.ts"), Path("b.cy.ts")), weight=7),
            Bucket(index=1),
        ]
    )

    text = output.getvalue()
    assert "Bucket plan" in text
    assert "7" in text


def test_summary_success(reporter: CLIReporter, output: StringIO) -> None:
    summary = RunSummary(
        results=(
            WorkerResult(worker_index=0, status=WorkerStatus.SUCCEEDED, exit_code=0, files_run=3),
        ),
        total_files=3,
    )

    reporter.print_run_summary(summary)

    text = output.getvalue()
    assert "Results (weighted mode)" in text
    assert "passed" in text
    assert "All 3 test file(s) completed successfully." in text


def test_summary_failure_lists_files(reporter: CLIReporter, output: StringIO) -> None:
    summary = RunSummary(
        results=(
            WorkerResult(
                worker_index=0,
                status=WorkerStatus.FAILED,
                exit_code=1,
                files_run=2,
                failed_files=(Path("cart.cy.ts"),),
            ),
            WorkerResult(
                worker_index=1, status=WorkerStatus.ERRORED, message="timed out after 5s"
            ),
        ),
        total_files=4,
        mode=DistributionMode.POLLING,
    )

    reporter.print_run_summary(summary)

    text = output.getvalue()
    assert "Results (polling mode)" in text
    assert "Failed test files:" in text
    assert "cart.cy.ts" in text
    assert "timed out after 5s" in text
    assert "2 of 2 worker(s) failed." in text


def test_message_helpers(reporter: CLIReporter, output: StringIO) -> None:
    reporter.print_error("bad thing")
    reporter.print_warning("careful")

    text = output.getvalue()
    assert "bad thing" in text
    assert "careful" in text


def test_bracketed_paths_are_printed_verbatim(reporter: CLIReporter, output: StringIO) -> None:
    failed = Path("cypress/e2e/[id]/show.cy.ts")
    summary = RunSummary(
        results=(
            WorkerResult(
                worker_index=0,
                status=WorkerStatus.ERRORED,
                failed_files=(failed,),
                message="Cannot read [bold]file[/bold]",
            ),
        ),
        total_files=1,
    )

    reporter.print_run_summary(summary)

    text = output.getvalue()
    assert "cypress/e2e/[id]/show.cy.ts" in text
    assert "Cannot read [bold]file[/bold]" in text


def test_error_message_keeps_brackets(reporter: CLIReporter, output: StringIO) -> None:
    reporter.print_error("Test directory does not exist: /app/[slug]/e2e")

    assert "/app/[slug]/e2e" in output.getvalue()
