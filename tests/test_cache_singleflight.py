"""Query cache and single-flight coordination."""

from __future__ import annotations

import asyncio

import pytest

from fedvlm.aggregate import aggregate
from fedvlm.cache import QueryCache
from fedvlm.errors import TransportError
from fedvlm.query import gene_key

pytestmark = pytest.mark.unit

KEY = gene_key("BRCA1")


def _response():
    return aggregate((), query=KEY)


def test_get_returns_none_when_missing() -> None:
    assert QueryCache().get(KEY) is None


def test_set_then_get_without_ttl_never_expires() -> None:
    cache = QueryCache()
    response = _response()
    cache.set(KEY, response)
    assert cache.get(KEY) is response
    assert KEY in cache
    assert len(cache) == 1


def test_entries_expire_after_ttl() -> None:
    now = [100.0]
    cache = QueryCache(ttl_seconds=10, clock=lambda: now[0])
    cache.set(KEY, _response())

    now[0] = 109.9
    assert cache.get(KEY) is not None
    now[0] = 110.0
    assert cache.get(KEY) is None
    assert len(cache) == 0


def test_invalidate_and_clear() -> None:
    cache = QueryCache()
    cache.set(KEY, _response())
    cache.invalidate(KEY)
    assert KEY not in cache

    cache.set(KEY, _response())
    cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_concurrent_fetches_for_one_key_share_a_single_call() -> None:
    cache = QueryCache()
    calls = 0
    gate = asyncio.Event()

    async def fetch():
        nonlocal calls
        calls += 1
        await gate.wait()
        return _response()

    tasks = [asyncio.create_task(cache.get_or_fetch(KEY, fetch)) for _ in range(5)]
    await asyncio.sleep(0)
    assert cache.is_pending(KEY)
    gate.set()
    results = await asyncio.gather(*tasks)

    assert calls == 1
    assert all(r is results[0] for r in results)
    assert not cache.is_pending(KEY)


@pytest.mark.asyncio
async def test_cached_value_skips_fetch(caplog) -> None:
    caplog.set_level("DEBUG", logger="fedvlm.cache")
    cache = QueryCache()
    cache.set(KEY, _response())

    async def fetch():
        raise AssertionError("should not fetch")

    await cache.get_or_fetch(KEY, fetch)
    assert "Cache hit" in caplog.text


@pytest.mark.asyncio
async def test_failures_are_shared_but_not_cached() -> None:
    cache = QueryCache()
    calls = 0
    gate = asyncio.Event()

    async def failing_fetch():
        nonlocal calls
        calls += 1
        await gate.wait()
        raise TransportError("down", status_code=503)

    tasks = [
        asyncio.create_task(cache.get_or_fetch(KEY, failing_fetch)) for _ in range(3)
    ]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert calls == 1
    assert all(isinstance(r, TransportError) for r in results)
    assert KEY not in cache

    async def ok_fetch():
        return _response()

    assert await cache.get_or_fetch(KEY, ok_fetch) is not None
    assert KEY in cache
