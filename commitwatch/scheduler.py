"""In-process scan scheduling, for deployments without an external cron."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitwatch.engines.commit_scanner.scanner import CommitScanner
from commitwatch.engines.github.client import GitHubClient

logger = structlog.get_logger("commitwatch.scheduler")


class EngineLoop:
    """Call *run_fn* every *interval* seconds, or sooner when woken."""

    def __init__(
        self,
        name: str,
        run_fn: Callable[[], Awaitable[int]],
        interval: float,
    ) -> None:
        self.name = name
        self.run_fn = run_fn
        self.interval = interval
        self._wakeup = asyncio.Event()

    def wake(self) -> None:
        """Start the next pass now instead of at the end of the interval."""
        self._wakeup.set()

    async def run_once(self) -> int | None:
        """One pass; a failure is logged and reported as None."""
        try:
            processed = await self.run_fn()
        except Exception:
            logger.exception("engine.error", engine=self.name)
            return None
        logger.info("engine.cycle", engine=self.name, processed=processed)
        return processed

    async def run_forever(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            self._wakeup.clear()
            await self.run_once()


class Scheduler:
    """Owns one asyncio task per EngineLoop."""

    def __init__(self, loops: list[EngineLoop]) -> None:
        self._loops = loops
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def loops(self) -> list[EngineLoop]:
        return list(self._loops)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Spawn every loop and wake it so the first pass runs at startup."""
        for engine in self._loops:
            self._tasks.append(
                asyncio.create_task(engine.run_forever(), name=f"engine-{engine.name}")
            )
            engine.wake()
        logger.info("scheduler.started", engines=[engine.name for engine in self._loops])

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("scheduler.stopped")


def create_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    scanner: CommitScanner,
    github_client: GitHubClient,
    interval: float | None = None,
) -> Scheduler:
    """A Scheduler with one ``commit_scanner`` loop, or no loops at all.

    *interval* defaults to ``COMMITWATCH_SCAN_INTERVAL`` seconds. Zero or
    less (the default) leaves scanning to an external cron calling the
    trigger endpoint.
    """
    if interval is None:
        interval = float(os.environ.get("COMMITWATCH_SCAN_INTERVAL", "0"))
    if interval <= 0:
        return Scheduler([])

    async def scan_pass() -> int:
        result = await scanner.scan(session_factory, github_client)
        return result.notified

    return Scheduler([EngineLoop("commit_scanner", scan_pass, interval)])
