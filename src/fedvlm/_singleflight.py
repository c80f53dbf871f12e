"""Async single-flight helper.

Coordinates concurrent fetches for the same query key so only one coroutine
talks to the transport, while the others await the same Future.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

K = TypeVar("K")
T = TypeVar("T")


def consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'Future exception was never retrieved' for coordination futures."""
    try:
        _ = fut.exception()
    except asyncio.CancelledError:
        return


async def singleflight_cached(
    key: K,
    *,
    lock: asyncio.Lock,
    inflight: dict[K, asyncio.Future[T]],
    cache_get: Callable[[K], T | None],
    cache_set: Callable[[K, T], None],
    work: Callable[[], Awaitable[T]],
) -> tuple[T, bool]:
    """Return the cached value for *key*, or compute it once.

    Returns ``(value, fetched)`` where *fetched* is True only for the caller
    that actually ran *work*. Failures are shared with every waiter but never
    cached, so the next call for the key runs *work* again.
    """
    cached = cache_get(key)
    if cached is not None:
        return cached, False

    async with lock:
        cached = cache_get(key)
        if cached is not None:
            return cached, False

        fut = inflight.get(key)
        if fut is None:
            fut = asyncio.get_running_loop().create_future()
            fut.add_done_callback(consume_future_exception)
            inflight[key] = fut
            creator = True
        else:
            creator = False

    if not creator:
        return await fut, False

    try:
        value = await work()
    except asyncio.CancelledError:
        fut.cancel()
        raise
    except Exception as e:
        fut.set_exception(e)
        raise
    else:
        async with lock:
            cache_set(key, value)
        fut.set_result(value)
        return value, True
    finally:
        async with lock:
            inflight.pop(key, None)
