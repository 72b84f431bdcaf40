"""Concurrent fan-out with per-branch failure isolation."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_settled(*aws: Awaitable[list[T]], label: str = "fanout") -> list[T]:
    """Run list-producing awaitables concurrently and flatten the successes.

    A branch that raises is logged and contributes nothing; the others are
    unaffected. Result order follows argument order.

    Args:
        *aws: Awaitables each resolving to a list
        label: Name used in failure logs

    Returns:
        Concatenation of every successful branch's list
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    merged: list[T] = []
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error("%s branch %d failed: %r", label, index, result)
            continue
        merged.extend(result)
    return merged
