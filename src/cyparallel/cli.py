"""cy-parallel command-line entry point.

Behaviour is governed by environment variables and ``.cyparallel.yml``
(see :mod:`cyparallel.config`); command-line options override both.
Exit code is 0 when every worker succeeded and 1 otherwise, including
configuration and discovery errors.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
import yaml
from rich.logging import RichHandler
from rich.markup import escape

from cyparallel import __version__
from cyparallel.config import load_config, validate_config
from cyparallel.errors import ConfigurationError, DiscoveryError
from cyparallel.reporters.terminal import console, reporter
from cyparallel.sharding.discovery import discover_test_files
from cyparallel.sharding.parallel_runner import ParallelRunConfig, run_parallel

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[
            RichHandler(console=console, show_time=False, show_path=False, markup=False)
        ],
        force=True,
    )


@click.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root containing an optional .cyparallel.yml.",
)
@click.option("--dir", "directory", default=None, help="Directory to search for test files.")
@click.option("--command", default=None, help="Test-runner command (default: npx cypress run).")
@click.option("--workers", type=int, default=None, help="Number of parallel workers.")
@click.option(
    "--poll/--weighted",
    default=None,
    help="Polling mode (workers pull one file at a time) or weighted bucketing.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds before a test-runner process is killed (0 = none).",
)
@click.option("--verbose/--no-verbose", default=None, help="Debug logging.")
@click.option(
    "--cypress-log/--no-cypress-log",
    default=None,
    help="Show the test runner's own output.",
)
@click.version_option(version=__version__, prog_name="cy-parallel")
def main(
    path: str,
    directory: str | None,
    command: str | None,
    workers: int | None,
    poll: bool | None,
    timeout: float | None,
    verbose: bool | None,
    cypress_log: bool | None,
) -> None:
    """Run end-to-end test specs across parallel workers."""
    _configure_logging(verbose=bool(verbose))

    overrides = {
        "directory": directory,
        "command": command,
        "workers": workers,
        "poll": poll,
        "timeout": timeout,
        "verbose": verbose,
        "cypress_log": cypress_log,
    }
    try:
        config = load_config(path, overrides)
    except (OSError, yaml.YAMLError) as exc:
        reporter.print_error(f"Failed to load configuration: {exc}")
        raise SystemExit(EXIT_FAILURE) from exc

    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    errors = validate_config(config)
    if errors:
        reporter.print_error(f"Found {len(errors)} configuration error(s):")
        for idx, error in enumerate(errors, start=1):
            console.print(f"  {idx}. [red]{escape(error)}[/red]")
        raise SystemExit(EXIT_FAILURE)

    logger.debug("Configuration: %s", config)

    try:
        files = discover_test_files(Path(path) / config.directory, config.patterns)
        summary = asyncio.run(
            run_parallel(
                files,
                ParallelRunConfig.from_config(config),
                on_plan=reporter.print_bucket_plan,
            )
        )
    except (ConfigurationError, DiscoveryError) as exc:
        reporter.print_error(str(exc))
        raise SystemExit(EXIT_FAILURE) from exc
    except KeyboardInterrupt:
        reporter.print_warning("Interrupted; all test-runner processes were stopped.")
        raise SystemExit(EXIT_INTERRUPTED) from None

    reporter.print_run_summary(summary)
    raise SystemExit(summary.exit_code)


if __name__ == "__main__":
    main()
