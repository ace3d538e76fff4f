"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cyparallel.sharding.models import WorkerStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cyparallel.sharding.models import Bucket, RunSummary

console = Console()

_SECONDS_PER_MINUTE = 60.0

_STATUS_STYLES: dict[WorkerStatus, tuple[str, str]] = {
    WorkerStatus.SUCCEEDED: ("green", "✓ passed"),
    WorkerStatus.FAILED: ("red", "✗ failed"),
    WorkerStatus.ERRORED: ("red", "! errored"),
}


def _format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string."""
    if seconds >= _SECONDS_PER_MINUTE:
        return f"{seconds / _SECONDS_PER_MINUTE:.1f}m"
    return f"{seconds:.1f}s"


class CLIReporter:
    """Rich terminal output for bucket plans and run summaries."""

    def __init__(self, output: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = output or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def print_bucket_plan(self, buckets: Sequence[Bucket]) -> None:
        """Print one row per bucket with its file count and total weight."""
        table = Table(title="Bucket plan", show_header=True, header_style="bold")
        table.add_column("Worker", justify="right")
        table.add_column("Files", justify="right")
        table.add_column("Weight", justify="right")
        for bucket in buckets:
            style = "dim" if bucket.is_empty else ""
            table.add_row(
                str(bucket.index + 1), str(len(bucket)), str(bucket.weight), style=style
            )
        self.console.print(table)

    def print_run_summary(self, summary: RunSummary) -> None:
        """Print the per-worker outcome table and the overall verdict."""
        table = Table(
            title=f"Results ({summary.mode.value} mode)", show_header=True, header_style="bold"
        )
        table.add_column("Worker", justify="right")
        table.add_column("Status")
        table.add_column("Files", justify="right")
        table.add_column("Exit code", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("Details")

        for result in summary.results:
            color, label = _STATUS_STYLES[result.status]
            table.add_row(
                str(result.worker_index + 1),
                f"[{color}]{label}[/{color}]",
                str(result.files_run),
                "-" if result.exit_code is None else str(result.exit_code),
                _format_duration(result.duration_ms / 1000),
                escape(result.message),
            )

        self.console.print()
        self.console.print(table)

        failed_files = summary.failed_files
        if failed_files:
            self.console.print("[bold red]Failed test files:[/bold red]")
            for path in failed_files:
                self.console.print(f"  • {escape(str(path))}", style="red")

        self.console.print()
        if summary.success:
            self.print_success(
                f"All {summary.total_files} test file(s) completed successfully."
            )
        else:
            self.print_error(
                f"{len(summary.failed_workers)} of {len(summary.results)} worker(s) failed."
            )


reporter = CLIReporter()
