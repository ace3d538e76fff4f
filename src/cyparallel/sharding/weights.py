"""Test file weight estimation.

A file's weight is a proxy for its execution cost: ``base_weight`` for a
file without active tests, otherwise ``base_weight + weight_per_test *
active_tests``.  A test case is active unless it, or any suite enclosing it,
is marked skipped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cyparallel.errors import WeightEstimationError
from cyparallel.parsing.declarations import (
    DeclarationKind,
    DeclarationParser,
    TreeSitterDeclarationParser,
)
from cyparallel.parsing.treesitter import detect_language
from cyparallel.sharding.models import WeightedFile

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from cyparallel.parsing.declarations import DeclarationNode

logger = logging.getLogger(__name__)

DEFAULT_BASE_WEIGHT = 1
DEFAULT_WEIGHT_PER_TEST = 1


def count_active_tests(nodes: Sequence[DeclarationNode]) -> int:
    """Count test cases not excluded by their own or an ancestor's skip marker."""
    skipped_suites: list[bool] = []

    def visit(node: DeclarationNode) -> int:
        count = 0
        entering_suite = node.kind is DeclarationKind.SUITE
        if entering_suite:
            skipped_suites.append(node.skipped)
        elif not node.skipped and not any(skipped_suites):
            count += 1

        for child in node.children:
            count += visit(child)

        if entering_suite:
            skipped_suites.pop()
        return count

    return sum(visit(node) for node in nodes)


def compute_weight(active_tests: int, base_weight: int, weight_per_test: int) -> int:
    """Weight of a file with *active_tests* active test cases."""
    if active_tests <= 0:
        return base_weight
    return base_weight + weight_per_test * active_tests


def _read_and_count(path: Path, parser: DeclarationParser) -> int:
    try:
        source = path.read_bytes()
    except OSError as exc:
        raise WeightEstimationError(f"Cannot read file: {exc}") from exc
    language = detect_language(path)
    if language is None:
        # Still scheduled; without a grammar no test declarations are found.
        logger.debug("%s: no parser for %r, using base weight", path, path.suffix or path.name)
        return 0
    return count_active_tests(parser.parse(source, language))


def estimate_weight(
    path: Path,
    *,
    base_weight: int = DEFAULT_BASE_WEIGHT,
    weight_per_test: int = DEFAULT_WEIGHT_PER_TEST,
    parser: DeclarationParser | None = None,
) -> WeightedFile | None:
    """Estimate the weight of one test file.

    Returns ``None`` (and logs a warning) when the file cannot be read or
    parsed; the caller excludes such files from planning.
    """
    try:
        active = _read_and_count(path, parser or TreeSitterDeclarationParser())
    except WeightEstimationError as exc:
        logger.warning("Error processing file %s: %s", path, exc)
        return None

    weight = compute_weight(active, base_weight, weight_per_test)
    logger.debug("%s: %d active test(s), weight %d", path, active, weight)
    return WeightedFile(file=path, weight=weight, active_tests=active)


def estimate_weights(
    files: Iterable[Path],
    *,
    base_weight: int = DEFAULT_BASE_WEIGHT,
    weight_per_test: int = DEFAULT_WEIGHT_PER_TEST,
    parser: DeclarationParser | None = None,
) -> list[WeightedFile]:
    """Estimate weights for *files*, preserving order and dropping failures."""
    shared_parser = parser or TreeSitterDeclarationParser()
    weighted: list[WeightedFile] = []
    for path in files:
        info = estimate_weight(
            path,
            base_weight=base_weight,
            weight_per_test=weight_per_test,
            parser=shared_parser,
        )
        if info is not None:
            weighted.append(info)
    return weighted
