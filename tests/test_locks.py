"""Tests for the per-provider lock pool."""

import asyncio

import pytest

from booking_engine.scheduling.locks import ProviderLockPool


class TestProviderLockPool:
    @pytest.mark.asyncio
    async def test_same_provider_is_serialized(self):
        pool = ProviderLockPool()
        events: list[str] = []

        async def critical(name: str) -> None:
            async with pool.hold("prov-1"):
                events.append(f"{name}-in")
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                events.append(f"{name}-out")

        await asyncio.gather(critical("a"), critical("b"))
        assert events == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_different_providers_interleave(self):
        pool = ProviderLockPool()
        events: list[str] = []

        async def critical(provider: str) -> None:
            async with pool.hold(provider):
                events.append(f"{provider}-in")
                await asyncio.sleep(0)
                events.append(f"{provider}-out")

        await asyncio.gather(critical("p1"), critical("p2"))
        assert events.index("p2-in") < events.index("p1-out")

    @pytest.mark.asyncio
    async def test_entry_evicted_after_release(self):
        pool = ProviderLockPool()
        async with pool.hold("prov-1"):
            assert pool.is_tracked("prov-1")
            assert len(pool) == 1
        assert not pool.is_tracked("prov-1")
        assert len(pool) == 0

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        pool = ProviderLockPool()
        with pytest.raises(RuntimeError):
            async with pool.hold("prov-1"):
                raise RuntimeError("boom")
        assert len(pool) == 0
        async with pool.hold("prov-1"):
            pass

    @pytest.mark.asyncio
    async def test_entry_kept_while_waiters_remain(self):
        pool = ProviderLockPool()
        release = asyncio.Event()

        async def holder() -> None:
            async with pool.hold("prov-1"):
                await release.wait()

        async def waiter() -> None:
            async with pool.hold("prov-1"):
                pass

        tasks = [asyncio.create_task(holder()), asyncio.create_task(waiter())]
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert pool.is_tracked("prov-1")
        release.set()
        await asyncio.gather(*tasks)
        assert len(pool) == 0
