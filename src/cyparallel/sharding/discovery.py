"""Test directory validation and recursive test file discovery."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from cyparallel.errors import (
    DirectoryNotFoundError,
    NoTestFilesFoundError,
    NotADirectoryPathError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)


def validate_directory(directory: str | Path) -> Path:
    """Resolve *directory* and make sure it is an existing directory.

    Raises:
        DirectoryNotFoundError: If the path does not exist.
        NotADirectoryPathError: If the path exists but is not a directory.
    """
    resolved = Path(directory).resolve()
    if not resolved.exists():
        raise DirectoryNotFoundError(str(resolved))
    if not resolved.is_dir():
        raise NotADirectoryPathError(str(resolved))
    return resolved


def _walk(directory: Path) -> Iterator[Path]:
    # Symlinked directories are not followed so cycles cannot occur.
    for entry in sorted(directory.iterdir()):
        if entry.is_dir() and not entry.is_symlink():
            yield from _walk(entry)
        elif entry.is_file():
            yield entry


def discover_test_files(
    directory: str | Path,
    patterns: Sequence[str] = (),
) -> list[Path]:
    """Recursively collect candidate test files under *directory*.

    Args:
        directory: Root directory to search.
        patterns: Optional glob patterns relative to the root
            (e.g. ``**/*.cy.ts``).  When empty, every regular file is a
            candidate.

    Returns:
        Test file paths in a stable, per-directory sorted order.

    Raises:
        DirectoryNotFoundError: If *directory* does not exist.
        NotADirectoryPathError: If *directory* is not a directory.
        NoTestFilesFoundError: If nothing was found.
    """
    root = validate_directory(directory)

    if patterns:
        matched: set[Path] = set()
        for pattern in patterns:
            matched.update(p for p in root.glob(pattern) if p.is_file())
        files = sorted(matched)
    else:
        files = list(_walk(root))

    if not files:
        raise NoTestFilesFoundError(str(root))

    logger.info("Found %d test files in '%s'", len(files), root)
    return files
