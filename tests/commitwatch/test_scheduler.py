"""Unit tests for EngineLoop, Scheduler and create_scheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from helpers import utc

from commitwatch.engines.commit_scanner.models import ScanResult
from commitwatch.scheduler import EngineLoop, Scheduler, create_scheduler


async def _wait_until(predicate, poll: float = 0.01):
    """Poll until predicate returns True."""
    while not predicate():
        await asyncio.sleep(poll)


def _counting_loop(*, interval: float, side_effect: Exception | None = None):
    calls: list[int] = []

    async def run_fn() -> int:
        calls.append(1)
        if side_effect is not None:
            raise side_effect
        return len(calls)

    return EngineLoop("scan", run_fn, interval), calls


async def _cancel(task: asyncio.Task) -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


async def test_loop_runs_on_timeout():
    loop, calls = _counting_loop(interval=0.05)

    task = asyncio.create_task(loop.run_forever())
    try:
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=1.0)
    finally:
        await _cancel(task)


async def test_wake_runs_a_pass_before_the_interval():
    loop, calls = _counting_loop(interval=100)

    task = asyncio.create_task(loop.run_forever())
    try:
        await asyncio.sleep(0.01)
        assert calls == []
        loop.wake()
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=1.0)
    finally:
        await _cancel(task)


async def test_run_once_reports_processed_count():
    loop, _ = _counting_loop(interval=100)

    assert await loop.run_once() == 1


async def test_run_once_swallows_and_logs_failure():
    loop, calls = _counting_loop(interval=100, side_effect=RuntimeError("boom"))

    assert await loop.run_once() is None
    assert len(calls) == 1


async def test_failed_pass_does_not_stop_the_loop():
    loop, calls = _counting_loop(interval=0.05, side_effect=RuntimeError("boom"))

    task = asyncio.create_task(loop.run_forever())
    try:
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 2), timeout=2.0)
    finally:
        await _cancel(task)


async def test_scheduler_start_runs_immediately_and_stops_cleanly():
    loop, calls = _counting_loop(interval=100)
    scheduler = Scheduler([loop])

    await scheduler.start()
    try:
        assert scheduler.running
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=1.0)
    finally:
        await scheduler.stop()

    assert not scheduler.running


async def test_empty_scheduler_start_stop():
    scheduler = Scheduler([])

    await scheduler.start()
    assert not scheduler.running
    await scheduler.stop()

    assert scheduler.loops == []


class TestCreateScheduler:
    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("COMMITWATCH_SCAN_INTERVAL", raising=False)

        scheduler = create_scheduler(MagicMock(), scanner=AsyncMock(), github_client=MagicMock())

        assert scheduler.loops == []

    def test_interval_from_env(self, monkeypatch):
        monkeypatch.setenv("COMMITWATCH_SCAN_INTERVAL", "300")

        scheduler = create_scheduler(MagicMock(), scanner=AsyncMock(), github_client=MagicMock())

        [loop] = scheduler.loops
        assert loop.name == "commit_scanner"
        assert loop.interval == 300.0

    @pytest.mark.parametrize("interval", [0, -5])
    def test_non_positive_interval_disables(self, interval):
        scheduler = create_scheduler(
            MagicMock(), scanner=AsyncMock(), github_client=MagicMock(), interval=interval
        )
        assert scheduler.loops == []

    async def test_loop_runs_a_scan_pass(self):
        factory = MagicMock()
        client = MagicMock()
        scanner = AsyncMock()
        scanner.scan.return_value = ScanResult(started_at=utc(2024, 1, 1), notified=3)

        scheduler = create_scheduler(factory, scanner=scanner, github_client=client, interval=60)

        processed = await scheduler.loops[0].run_once()

        assert processed == 3
        scanner.scan.assert_awaited_once_with(factory, client)
