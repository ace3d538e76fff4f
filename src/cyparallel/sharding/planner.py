"""Weighted bucket planning.

Files are distributed with the greedy longest-processing-time-first
heuristic: heaviest file first, each into the currently lightest bucket.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cyparallel.sharding.models import Bucket

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from cyparallel.sharding.models import WeightedFile

logger = logging.getLogger(__name__)


def plan_buckets(buckets_count: int, weighted_files: Sequence[WeightedFile]) -> list[Bucket]:
    """Partition *weighted_files* into *buckets_count* balanced buckets.

    Ties in weight keep input order (stable sort); ties in bucket total go
    to the lowest bucket index.  Some buckets may be empty.

    Raises:
        ValueError: If buckets_count is less than 1.
    """
    if buckets_count < 1:
        msg = f"buckets_count must be >= 1, got {buckets_count}"
        raise ValueError(msg)

    assigned: list[list[Path]] = [[] for _ in range(buckets_count)]
    totals = [0] * buckets_count

    for info in sorted(weighted_files, key=lambda wf: wf.weight, reverse=True):
        target = min(range(buckets_count), key=totals.__getitem__)
        assigned[target].append(info.file)
        totals[target] += info.weight

    return [
        Bucket(index=i, files=tuple(files), weight=total)
        for i, (files, total) in enumerate(zip(assigned, totals, strict=True))
    ]


def log_bucket_plan(buckets: Sequence[Bucket]) -> None:
    """Log bucket sizes and weights; file lists at debug level."""
    for bucket in buckets:
        logger.info(
            "Bucket %d: %d test file(s), weight: %d",
            bucket.index + 1,
            len(bucket),
            bucket.weight,
        )
        for path in bucket.files:
            logger.debug("  - %s", path)
