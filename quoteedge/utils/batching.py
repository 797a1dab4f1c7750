"""Bounded parallel fetching for the retrieval boundary.

The analytics core never does I/O. Whoever builds an outcome set or a merged
book for it fetches many quotes/books at once; this helper keeps at most
`limit` of those fetches in flight and drops the ones that fail so a single
bad source cannot abort the whole computation.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from quoteedge.config.settings import settings
from quoteedge.utils.logging import get_logger


logger = get_logger("batching")


T = TypeVar("T")


async def gather_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: Optional[int] = None,
    labels: Optional[Sequence[str]] = None,
) -> List[Optional[T]]:
    """Run coroutine factories with at most `limit` in flight.

    Args:
        factories: Zero-argument callables returning awaitables
        limit: Max concurrent fetches (defaults to ``settings.fetch.concurrency``)
        labels: Optional names used in failure logs, aligned with `factories`

    Returns:
        Results in input order; a failed fetch yields ``None`` in its slot.
    """
    width = limit if limit is not None else settings.fetch.concurrency
    if width < 1:
        raise ValueError(f"limit must be >= 1, got {width}")

    sem = asyncio.Semaphore(width)

    async def worker(factory: Callable[[], Awaitable[T]]) -> T:
        async with sem:
            return await factory()

    results = await asyncio.gather(*[worker(f) for f in factories], return_exceptions=True)

    out: List[Optional[T]] = []
    failed = 0
    for idx, res in enumerate(results):
        if isinstance(res, BaseException):
            if not isinstance(res, Exception):
                raise res
            failed += 1
            label = labels[idx] if labels and idx < len(labels) else str(idx)
            logger.warning("Fetch %s failed, excluding it: %s", label, res)
            out.append(None)
        else:
            out.append(res)

    if failed:
        logger.info("Bounded gather finished: %d ok, %d failed", len(out) - failed, failed)
    return out
