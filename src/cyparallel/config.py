"""Configuration from environment variables and ``.cyparallel.yml``.

Every setting is optional.  Precedence, highest first: explicit overrides
(CLI options), environment variables, ``.cyparallel.yml`` in the project
root, built-in defaults.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cyparallel.sharding.models import DistributionMode

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".cyparallel.yml"

DEFAULT_DIR = "cypress/e2e"
DEFAULT_COMMAND = "npx cypress run"
DEFAULT_BASE_DISPLAY_NUMBER = 99

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUE_VALUES = frozenset({"true", "1", "yes"})

# Setting name -> environment variable
_ENV_VARS: dict[str, str] = {
    "directory": "DIR",
    "command": "COMMAND",
    "workers": "WORKERS",
    "poll": "POLL",
    "weight_per_test": "WEIGHT_PER_TEST",
    "base_weight": "BASE_WEIGHT",
    "base_display_number": "BASE_DISPLAY_NUMBER",
    "verbose": "VERBOSE",
    "cypress_log": "CYPRESS_LOG",
    "use_xvfb": "USE_XVFB",
    "timeout": "TIMEOUT",
    "patterns": "PATTERNS",
}

# Setting name -> YAML key, where they differ
_YAML_KEYS: dict[str, str] = {"directory": "dir"}


def cpu_count() -> int:
    """Number of logical CPUs on this host (at least 1)."""
    return os.cpu_count() or 1


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Resolve environment variables in a flat YAML mapping."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class RunnerConfig:
    """Complete run configuration."""

    directory: str = DEFAULT_DIR
    """Root directory searched for test files."""

    command: str = DEFAULT_COMMAND
    """Test-runner command; ``--spec "<files>"`` is appended per invocation."""

    workers: int = field(default_factory=cpu_count)
    """Number of concurrent workers (never more than the CPU count)."""

    poll: bool = False
    """Use polling (work-stealing) mode instead of weighted bucketing."""

    weight_per_test: int = 1
    """Weight added per active test case."""

    base_weight: int = 1
    """Weight of every file regardless of its test count."""

    base_display_number: int = DEFAULT_BASE_DISPLAY_NUMBER
    """Display number of worker 0; worker ``i`` uses ``base + i``."""

    verbose: bool = False
    """Enable debug logging."""

    cypress_log: bool = False
    """Show the test runner's stdout/stderr."""

    use_xvfb: bool = field(default_factory=lambda: sys.platform.startswith("linux"))
    """Start an Xvfb server per worker and export ``DISPLAY``."""

    timeout: float = 0.0
    """Seconds before a runner process is killed (0 = no timeout)."""

    patterns: list[str] = field(default_factory=list)
    """Glob patterns restricting discovered files (empty = every file)."""

    @property
    def mode(self) -> DistributionMode:
        return DistributionMode.POLLING if self.poll else DistributionMode.WEIGHTED


def _as_int(name: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s: %r, using %d", name, value, default)
        return default


def _as_float(name: str, value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number for %s: %r, using %s", name, value, default)
        return default


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _as_patterns(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(item) for item in value if str(item).strip()]
    return []


def _load_yaml(root: Path) -> dict[str, Any]:
    config_file = root / CONFIG_FILENAME
    if not config_file.is_file():
        return {}
    parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    if not isinstance(parsed, dict):
        return {}
    return _resolve_dict(parsed)


def load_config(
    root: str | Path = ".",
    overrides: dict[str, Any] | None = None,
) -> RunnerConfig:
    """Load the run configuration.

    Args:
        root: Directory containing an optional ``.cyparallel.yml``.
        overrides: Setting values that beat every other source; ``None``
            values are ignored.
    """
    raw = _load_yaml(Path(root).resolve())
    explicit = {k: v for k, v in (overrides or {}).items() if v is not None}

    def value(name: str) -> Any:
        if name in explicit:
            return explicit[name]
        env_value = os.environ.get(_ENV_VARS[name])
        if env_value is not None and env_value != "":
            return env_value
        return raw.get(_YAML_KEYS.get(name, name))

    defaults = RunnerConfig()
    available_cpus = cpu_count()
    requested_workers = _as_int("workers", value("workers"), available_cpus)
    workers = min(requested_workers, available_cpus)
    if workers < requested_workers:
        logger.debug(
            "Requested %d workers, clamped to %d CPU(s)", requested_workers, available_cpus
        )

    return RunnerConfig(
        directory=str(value("directory") or DEFAULT_DIR),
        command=str(value("command") or DEFAULT_COMMAND),
        workers=workers,
        poll=_as_bool(value("poll"), defaults.poll),
        weight_per_test=_as_int("weight_per_test", value("weight_per_test"), 1),
        base_weight=_as_int("base_weight", value("base_weight"), 1),
        base_display_number=_as_int(
            "base_display_number", value("base_display_number"), DEFAULT_BASE_DISPLAY_NUMBER
        ),
        verbose=_as_bool(value("verbose"), defaults.verbose),
        cypress_log=_as_bool(value("cypress_log"), defaults.cypress_log),
        use_xvfb=_as_bool(value("use_xvfb"), defaults.use_xvfb),
        timeout=_as_float("timeout", value("timeout"), 0.0),
        patterns=_as_patterns(value("patterns")),
    )


def validate_config(config: RunnerConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.command.strip():
        errors.append("command must not be empty")
    if config.workers < 1:
        errors.append(f"workers must be at least 1 (got: {config.workers})")
    if config.base_weight < 1:
        errors.append(f"base_weight must be at least 1 (got: {config.base_weight})")
    if config.weight_per_test < 0:
        errors.append(f"weight_per_test must be non-negative (got: {config.weight_per_test})")
    if config.timeout < 0:
        errors.append(f"timeout must be non-negative (got: {config.timeout})")
    if config.base_display_number < 0:
        errors.append(
            f"base_display_number must be non-negative (got: {config.base_display_number})"
        )

    return errors
