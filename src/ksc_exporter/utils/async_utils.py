"""
Async utilities for KSC Exporter
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


async def gather_settled(aws: list[Awaitable[T]]) -> list[T | BaseException]:
    """
    Run awaitables concurrently and wait for all of them

    A failure never cancels the siblings; it is returned in place of the
    result so the caller can handle each outcome independently.

    Args:
        aws: Awaitables to run

    Returns:
        Results or exceptions in the same order as the input
    """
    if not aws:
        return []
    return await asyncio.gather(*aws, return_exceptions=True)


async def wait_for_stop(stop_event: asyncio.Event, timeout_seconds: float) -> bool:
    """
    Sleep up to timeout_seconds, waking early if stop_event is set

    Returns:
        True if the event was set, False if the timeout elapsed
    """
    if stop_event.is_set():
        return True
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        return False
    return True
