"""Unit tests for the change-signal Coalescer."""

from __future__ import annotations

import asyncio

from order_resolver.core.scheduler import Coalescer


class Counter:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


class TestCoalescer:
    async def test_burst_collapses_into_one_run(self) -> None:
        counter = Counter()
        coalescer = Coalescer(counter, window=0.1)

        for _ in range(5):
            coalescer.signal()
            await asyncio.sleep(0.005)
        assert coalescer.pending
        await asyncio.sleep(0.3)
        await coalescer.drain()

        assert counter.calls == 1
        assert coalescer.runs == 1
        assert not coalescer.pending

    async def test_separate_bursts_run_separately(self) -> None:
        counter = Counter()
        coalescer = Coalescer(counter, window=0.01)

        coalescer.signal()
        await asyncio.sleep(0.1)
        coalescer.signal()
        await asyncio.sleep(0.1)
        await coalescer.drain()

        assert counter.calls == 2

    async def test_cancel_drops_pending_signal(self) -> None:
        counter = Counter()
        coalescer = Coalescer(counter, window=0.01)

        coalescer.signal()
        coalescer.cancel()
        await asyncio.sleep(0.03)

        assert counter.calls == 0
        assert not coalescer.pending

    async def test_overlapping_runs_all_cancelled(self) -> None:
        release = asyncio.Event()
        started = 0
        finished = 0

        async def slow() -> None:
            nonlocal started, finished
            started += 1
            await release.wait()
            finished += 1

        coalescer = Coalescer(slow, window=0.0)
        coalescer.signal()
        await asyncio.sleep(0.01)
        coalescer.signal()
        await asyncio.sleep(0.01)
        assert started == 2
        assert coalescer.in_flight == 2

        coalescer.cancel()
        await coalescer.drain()
        release.set()
        await asyncio.sleep(0.01)

        assert finished == 0
        assert coalescer.in_flight == 0

    async def test_drain_waits_for_overlapping_runs(self) -> None:
        release = asyncio.Event()
        finished = 0

        async def slow() -> None:
            nonlocal finished
            await release.wait()
            finished += 1

        coalescer = Coalescer(slow, window=0.0)
        coalescer.signal()
        await asyncio.sleep(0.01)
        coalescer.signal()
        await asyncio.sleep(0.01)

        asyncio.get_running_loop().call_later(0.01, release.set)
        await coalescer.drain()

        assert finished == 2
        assert coalescer.in_flight == 0

    async def test_callback_error_is_logged_not_raised(self, caplog) -> None:
        async def boom() -> None:
            raise RuntimeError("refresh exploded")

        coalescer = Coalescer(boom, window=0.0)
        coalescer.signal()
        await asyncio.sleep(0.01)
        await coalescer.drain()

        assert "Coalesced refresh failed" in caplog.text

    async def test_drain_without_run(self) -> None:
        await Coalescer(Counter()).drain()
