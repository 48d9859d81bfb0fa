"""Spinner shown while a background task runs."""

from __future__ import annotations

import asyncio
import itertools

from rich.console import Console
from rich.live import Live
from rich.text import Text

FRAMES = "-\\|/"
INTERVAL = 0.05


async def track(
    worker: asyncio.Future,
    console: Console,
    message: str = "",
    interval: float = INTERVAL,
) -> None:
    """Render a rotating frame until ``worker`` finishes.

    The indicator stops when the worker completes, fails or is cancelled, or
    when this task is itself cancelled. The line is cleared in every case.
    """
    frames = itertools.cycle(FRAMES)
    with Live(console=console, transient=True, auto_refresh=False) as live:
        while not worker.done():
            live.update(Text.assemble((f"[{next(frames)}]", "yellow"), f" {message}" if message else ""), refresh=True)
            await asyncio.wait({worker}, timeout=interval)


async def run_with_progress(coro, console: Console, message: str = ""):
    """Run ``coro`` as a worker task alongside a progress indicator task."""
    worker = asyncio.ensure_future(coro)
    indicator = asyncio.create_task(track(worker, console, message))
    try:
        return await worker
    finally:
        indicator.cancel()
        if not worker.done():
            worker.cancel()
        await asyncio.gather(worker, indicator, return_exceptions=True)
