"""Tests for per-key asyncio locks."""

import asyncio

import pytest

from clinic_scheduling.core.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized() -> None:
    locks = KeyedLock()
    events: list[str] = []

    async def worker(name: str) -> None:
        async with locks.acquire(("doctor", 1)):
            events.append(f"{name}:in")
            await asyncio.sleep(0.01)
            events.append(f"{name}:out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a:in", "a:out", "b:in", "b:out"],
        ["b:in", "b:out", "a:in", "a:out"],
    )


@pytest.mark.asyncio
async def test_different_keys_run_concurrently() -> None:
    locks = KeyedLock()
    inside = 0
    peak = 0

    async def worker(key: int) -> None:
        nonlocal inside, peak
        async with locks.acquire(("doctor", key)):
            inside += 1
            peak = max(peak, inside)
            await asyncio.sleep(0.01)
            inside -= 1

    await asyncio.gather(worker(1), worker(2))

    assert peak == 2


@pytest.mark.asyncio
async def test_opposite_key_order_does_not_deadlock() -> None:
    locks = KeyedLock()

    async def worker(*keys) -> None:
        async with locks.acquire(*keys):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(
        asyncio.gather(
            worker(("doctor", 1), ("patient", 2)),
            worker(("patient", 2), ("doctor", 1)),
        ),
        timeout=2,
    )


@pytest.mark.asyncio
async def test_unused_locks_are_dropped() -> None:
    locks = KeyedLock()

    async with locks.acquire("a", "b"):
        assert len(locks) == 2

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_is_released_on_error() -> None:
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.acquire("a"):
            raise RuntimeError("boom")

    async with locks.acquire("a"):
        pass
    assert len(locks) == 0
