"""
Bounded concurrent fetches with per-unit results.

Each unit (a calendar or a participant) resolves to a FetchResult carrying
either its value or the error text, so one failing unit never fails the others.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar

from services.common.logging_config import get_logger

logger = get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class FetchResult(Generic[K, V]):
    key: K
    value: Optional[V] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_bounded(
    keys: Iterable[K],
    fetch: Callable[[K], Awaitable[V]],
    limit: int,
    unit: str = "calendar",
    label: Callable[[K], str] = str,
) -> List[FetchResult[K, V]]:
    """
    Run fetch(key) for every key with at most `limit` in flight.

    Results come back in key order.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run(key: K) -> FetchResult[K, V]:
        async with semaphore:
            try:
                value = await fetch(key)
            except Exception as e:
                logger.warning(
                    "Calendar data fetch failed, continuing without it",
                    unit=unit,
                    key=label(key),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return FetchResult(key=key, error=str(e) or type(e).__name__)
            return FetchResult(key=key, value=value)

    return list(await asyncio.gather(*(run(key) for key in keys)))
