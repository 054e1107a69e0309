from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def run_serialized(
    session: AsyncSession,
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    attempts: int,
    backoff_ms: int = 0,
) -> T:
    """
    Run `work` inside one transaction on `session`, retrying when the
    database aborts it for a lock or serialization conflict.

    Any exception rolls the transaction back, so a retried attempt always
    starts from a clean state. Domain errors are never retried.
    """
    for attempt in range(1, attempts + 1):
        try:
            async with session.begin():
                return await work(session)
        except OperationalError as exc:
            if attempt >= attempts:
                raise
            logger.warning("transaction conflict (attempt %d/%d): %s", attempt, attempts, exc.orig)
            await asyncio.sleep(backoff_ms * attempt / 1000)
    raise RuntimeError("attempts must be >= 1")
