"""Fan-out / fan-in over independent awaitables."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one fanned-out task: exactly one of *value* / *error* is meaningful."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(
    awaitables: Iterable[Awaitable[T]],
    *,
    limit: int | None = None,
) -> list[Settled[T]]:
    """Run all *awaitables* concurrently and return one :class:`Settled` per input.

    Results are in input order. A failure in one task never cancels its
    siblings. *limit* bounds how many run at once. Cancellation of the
    caller still propagates.
    """
    sem = asyncio.Semaphore(limit) if limit else None

    async def _settle(aw: Awaitable[T]) -> Settled[T]:
        try:
            if sem is None:
                return Settled(value=await aw)
            async with sem:
                return Settled(value=await aw)
        except Exception as exc:
            return Settled(error=exc)

    return list(await asyncio.gather(*(_settle(aw) for aw in awaitables)))
