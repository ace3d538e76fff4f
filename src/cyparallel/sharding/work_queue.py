"""Shared work queue for polling mode."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


class WorkQueue:
    """FIFO of remaining test files, drained once by concurrent workers.

    Each :meth:`take` removes exactly one file under a lock, so no two
    workers ever receive the same file.
    """

    def __init__(self, files: Iterable[Path]) -> None:
        self._items: deque[Path] = deque(files)
        self._total = len(self._items)
        self._lock = asyncio.Lock()

    @property
    def total(self) -> int:
        """Number of files the queue was created with."""
        return self._total

    def __len__(self) -> int:
        return len(self._items)

    async def take(self) -> Path | None:
        """Remove and return the next file, or ``None`` once the queue is empty."""
        async with self._lock:
            if not self._items:
                return None
            return self._items.popleft()
