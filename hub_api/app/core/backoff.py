"""Backoff utilities.

`exponential_backoff` is an async generator that yields the attempt number for the
caller to attempt an operation. When the caller asks for the next attempt, it first
sleeps for the backoff delay of the attempt that just failed. No delay follows the
final attempt, and an early `return`/`break` by the caller skips the sleep entirely.
"""
import asyncio
from typing import AsyncIterator


def backoff_delay(attempt_index: int, initial_delay: float, multiplier: float, max_delay: float) -> float:
    """Delay after the zero-based `attempt_index`: min(initial * multiplier**i, max)."""
    return min(initial_delay * (multiplier ** attempt_index), max_delay)


async def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
) -> AsyncIterator[int]:
    for attempt in range(1, max_attempts + 1):
        yield attempt
        if attempt < max_attempts:
            await asyncio.sleep(backoff_delay(attempt - 1, initial_delay, multiplier, max_delay))
