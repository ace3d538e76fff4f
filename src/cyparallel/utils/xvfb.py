"""Xvfb virtual display provisioning for headless workers."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

XVFB_BINARY = "Xvfb"
STARTUP_DELAY_SECONDS = 1.0
_SHUTDOWN_GRACE_SECONDS = 5.0


class XvfbError(Exception):
    """Raised when the Xvfb server cannot be started."""


async def start_xvfb(
    display: int,
    *,
    startup_delay: float = STARTUP_DELAY_SECONDS,
) -> asyncio.subprocess.Process:
    """Start ``Xvfb :<display>`` in its own session and give it time to come up.

    Raises:
        XvfbError: If the Xvfb binary cannot be executed.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            XVFB_BINARY,
            f":{display}",
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise XvfbError(f"Failed to start Xvfb on display :{display}: {exc}") from exc

    await asyncio.sleep(startup_delay)
    if process.returncode is not None:
        # Usually another server already owns this display, which is usable as-is.
        logger.warning(
            "Xvfb on display :%d exited early with code %d (display may already be in use)",
            display,
            process.returncode,
        )
    else:
        logger.debug("Xvfb started on display :%d (pid %d)", display, process.pid)
    return process


async def stop_xvfb(process: asyncio.subprocess.Process) -> None:
    """Terminate an Xvfb process and wait for it, killing it if it lingers."""
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=_SHUTDOWN_GRACE_SECONDS)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


@asynccontextmanager
async def virtual_display(
    display: int,
    *,
    enabled: bool = True,
    startup_delay: float = STARTUP_DELAY_SECONDS,
) -> AsyncIterator[int | None]:
    """Provide display *display* for the duration of the block.

    Yields the display number, or ``None`` when *enabled* is False (the
    caller then leaves ``DISPLAY`` untouched).
    """
    if not enabled:
        yield None
        return

    process = await start_xvfb(display, startup_delay=startup_delay)
    try:
        yield display
    finally:
        await asyncio.shield(stop_xvfb(process))
