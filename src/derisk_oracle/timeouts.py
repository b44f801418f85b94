from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from .errors import Timeout

T = TypeVar("T")


async def with_deadline(
    awaitable: Awaitable[T], seconds: float | None, *, stage: str, what: str
) -> T:
    """Await ``awaitable``, raising Timeout if it runs past ``seconds``.

    ``None`` means no deadline.
    """
    if seconds is None:
        return await awaitable
    try:
        async with asyncio.timeout(seconds):
            return await awaitable
    except TimeoutError as exc:
        raise Timeout(
            f"{what} exceeded {seconds}s deadline", stage=stage, seconds=seconds
        ) from exc
