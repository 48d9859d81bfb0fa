"""Tests for the progress indicator."""

from __future__ import annotations

import asyncio

import pytest

from shellgen.utils.progress import run_with_progress, track


class TestTrack:
    @pytest.mark.asyncio
    async def test_stops_when_worker_finishes(self, console):
        worker = asyncio.ensure_future(asyncio.sleep(0.12, result="done"))
        await asyncio.wait_for(track(worker, console, interval=0.01), timeout=2)
        assert worker.done()

    @pytest.mark.asyncio
    async def test_stops_when_worker_cancelled(self, console):
        worker = asyncio.ensure_future(asyncio.sleep(10))
        indicator = asyncio.create_task(track(worker, console, interval=0.01))
        await asyncio.sleep(0.03)
        worker.cancel()
        await asyncio.wait_for(indicator, timeout=2)
        assert indicator.done() and not indicator.cancelled()

    @pytest.mark.asyncio
    async def test_can_be_cancelled(self, console):
        worker = asyncio.ensure_future(asyncio.sleep(10))
        indicator = asyncio.create_task(track(worker, console, interval=0.01))
        await asyncio.sleep(0.03)
        indicator.cancel()
        with pytest.raises(asyncio.CancelledError):
            await indicator
        assert not worker.done()
        worker.cancel()


class TestRunWithProgress:
    @pytest.mark.asyncio
    async def test_returns_worker_result(self, console):
        async def work():
            await asyncio.sleep(0.05)
            return "ls -la"

        assert await run_with_progress(work(), console) == "ls -la"

    @pytest.mark.asyncio
    async def test_propagates_worker_error(self, console):
        async def work():
            await asyncio.sleep(0.01)
            raise RuntimeError("backend exploded")

        with pytest.raises(RuntimeError, match="backend exploded"):
            await run_with_progress(work(), console)

    @pytest.mark.asyncio
    async def test_no_tasks_left_behind(self, console):
        async def work():
            return 1

        before = asyncio.all_tasks()
        await run_with_progress(work(), console)
        assert asyncio.all_tasks() == before
