"""Exception hierarchy for cy-parallel.

Configuration and discovery errors are fatal and abort the run before any
worker is spawned.  Weight estimation errors are recovered per file.
"""

from __future__ import annotations


class CyParallelError(Exception):
    """Base class for all cy-parallel errors."""


class ConfigurationError(CyParallelError):
    """Raised when the run configuration is invalid."""


class DirectoryNotFoundError(ConfigurationError):
    """Raised when the test directory does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Test directory does not exist: {path}")
        self.path = path


class NotADirectoryPathError(ConfigurationError):
    """Raised when the test directory path points at something else."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Test directory path is not a directory: {path}")
        self.path = path


class DiscoveryError(CyParallelError):
    """Raised when test file discovery cannot produce a usable file list."""


class NoTestFilesFoundError(DiscoveryError):
    """Raised when the test directory contains no candidate files."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No test files found in: {path}")
        self.path = path


class WeightEstimationError(CyParallelError):
    """Raised when a test file's weight cannot be estimated."""


class ParseError(WeightEstimationError):
    """Raised when a test file's source cannot be parsed."""
