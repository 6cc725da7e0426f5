"""Unit tests for StoreSession."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any
from unittest.mock import AsyncMock

import pytest

from order_resolver.adapters.memory import MemoryBackend
from order_resolver.core.config import ResolverConfig
from order_resolver.core.enums import EntityKind
from order_resolver.core.query import Eq, Filter, In
from order_resolver.core.session import SessionSnapshot, StoreSession


class GatedBackend(MemoryBackend):
    """Blocks every read scoped to ``gated_value`` until ``gate`` is set."""

    def __init__(self, gated_value: Any) -> None:
        super().__init__()
        self.gated_value = gated_value
        self.gate = asyncio.Event()
        self.blocked = asyncio.Event()

    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        if any(isinstance(f, Eq) and f.value == self.gated_value for f in filters):
            self.blocked.set()
            await self.gate.wait()
        return await super().select(table, columns, filters, order_by, descending, limit)


@pytest.fixture
async def session(backend: MemoryBackend, config: ResolverConfig):
    s = StoreSession(backend, config=config)
    yield s
    await s.close()


class TestSelectStore:
    async def test_loads_snapshot(self, session: StoreSession) -> None:
        snapshot = await session.select_store("s1")

        assert snapshot is session.snapshot
        assert snapshot.context_id == "s1"
        assert snapshot.orders_binding is not None
        assert snapshot.orders_binding.table == "orders_grocery"
        assert snapshot.items_binding
        assert [o.id for o in snapshot.orders] == [2, 1]
        assert len(snapshot.customers) == 2
        assert snapshot.diagnostic is None

    async def test_binding_resolved_once_per_context(
        self, session: StoreSession, backend: MemoryBackend
    ) -> None:
        await session.select_store("s1")
        binding = session.binding
        reads = backend.calls.count(("select", "grocery_orders"))

        await session.refresh()
        await session.refresh()

        assert session.binding is binding
        assert backend.calls.count(("select", "grocery_orders")) == reads

    async def test_switch_re_resolves(self, session: StoreSession) -> None:
        await session.select_store("s1")
        first = session.binding
        snapshot = await session.select_store("s2")

        assert session.binding is not first
        assert session.generation == 2
        assert [o.id for o in snapshot.orders] == [3]
        assert snapshot.orders[0].items[0].quantity == 4.0

    async def test_unresolved_yields_empty_snapshot(self, config: ResolverConfig) -> None:
        session = StoreSession(MemoryBackend(), config=config)
        snapshot = await session.select_store("s1")

        assert snapshot.orders == []
        assert snapshot.customers == []
        assert session.binding is None
        assert snapshot.diagnostic is not None
        assert "grocery_orders" in snapshot.diagnostic
        await session.close()

    async def test_refresh_without_context(self, session: StoreSession) -> None:
        snapshot = await session.refresh()
        assert snapshot == SessionSnapshot.empty(None)


class TestStalePipelines:
    async def test_stale_result_discarded(self, config: ResolverConfig) -> None:
        backend = GatedBackend(gated_value="s1")
        backend.add_table(
            "grocery_orders",
            ["id", "store_id", "status", "created_at"],
            [
                {"id": 1, "store_id": "s1", "status": "pending"},
                {"id": 2, "store_id": "s2", "status": "pending"},
            ],
        )
        session = StoreSession(backend, config=config)

        stale = asyncio.create_task(session.select_store("s1"))
        await backend.blocked.wait()
        current = await session.select_store("s2")
        backend.gate.set()
        await stale

        assert session.context_id == "s2"
        assert session.snapshot is current
        assert [o.id for o in session.snapshot.orders] == [2]
        assert session.binding is current.orders_binding
        await session.close()

    async def test_retrigger_same_context_resolves_once(self, config: ResolverConfig) -> None:
        backend = GatedBackend(gated_value="s1")
        backend.add_table(
            "grocery_orders",
            ["id", "store_id", "created_at"],
            [{"id": 1, "store_id": "s1"}],
        )
        session = StoreSession(backend, config=config)
        session.resolver.resolve = AsyncMock(wraps=session.resolver.resolve)

        first = asyncio.create_task(session.select_store("s1"))
        await backend.blocked.wait()
        second = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        backend.gate.set()
        await asyncio.gather(first, second)

        order_resolutions = [
            c for c in session.resolver.resolve.await_args_list if c.args[0] is EntityKind.ORDERS
        ]
        assert len(order_resolutions) == 1
        assert session.binding is session.snapshot.orders_binding
        assert session.binding.table == "grocery_orders"
        await session.close()

    async def test_concurrent_refreshes_are_serialized(self, session: StoreSession) -> None:
        await session.select_store("s1")
        first, second = await asyncio.gather(session.refresh(), session.refresh())

        assert [o.id for o in first.orders] == [2, 1]
        assert session.snapshot is second


class TestNotifyChange:
    async def test_burst_triggers_one_refresh(
        self, session: StoreSession, backend: MemoryBackend
    ) -> None:
        await session.select_store("s1")
        await backend.update("orders_grocery", {"status": "ready"}, [Eq("id", 1)])

        for _ in range(3):
            session.notify_change()
        await asyncio.sleep(0.1)
        await session.coalescer.drain()

        assert session.coalescer.runs == 1
        assert {o.id: o.status for o in session.snapshot.orders}[1] == "ready"

    async def test_ignored_without_context(self, session: StoreSession) -> None:
        session.notify_change()
        assert not session.coalescer.pending

    async def test_switch_cancels_pending_refresh(self, session: StoreSession) -> None:
        await session.select_store("s1")
        session.notify_change()
        await session.select_store("s2")

        assert not session.coalescer.pending


class TestSetStatus:
    async def test_snapshot_patched_after_write(
        self, session: StoreSession, backend: MemoryBackend
    ) -> None:
        await backend.update("orders_grocery", {"customer_user_id": "u1"}, [In("id", [1, 2])])
        backend.add_table(
            "profiles",
            ["user_id", "full_name", "avatar_url"],
            [{"user_id": "u1", "full_name": "Asha", "avatar_url": "https://a/u1.png"}],
        )
        before = await session.select_store("s1")
        lookups = backend.calls.count(("select", "profiles"))

        result = await session.set_status(1, "delivered")

        assert result.ok
        after = session.snapshot
        assert after is not before
        assert {o.id: o.status for o in after.orders} == {2: "pending", 1: "delivered"}
        assert {o.id: o.status for o in before.orders} == {2: "pending", 1: "pending"}
        (customer,) = after.customers
        assert customer.delivered_count == 1
        assert customer.display_name == "Asha"
        assert customer.avatar_url == "https://a/u1.png"
        assert backend.calls.count(("select", "profiles")) == lookups

    async def test_patch_by_external_number(self, session: StoreSession) -> None:
        await session.select_store("s1")
        result = await session.set_status("GR-0002", "ready")

        assert result.matched_column == "order_id"
        assert {o.id: o.status for o in session.snapshot.orders}[2] == "ready"

    async def test_patch_follows_matched_column_only(self, config: ResolverConfig) -> None:
        backend = MemoryBackend()
        backend.add_table(
            "grocery_orders",
            ["id", "order_id", "store_id", "status"],
            [
                {"id": 5, "order_id": "GR-9", "store_id": "s1", "status": "pending"},
                {"id": 6, "order_id": "5", "store_id": "s1", "status": "pending"},
            ],
        )
        session = StoreSession(backend, config=config)
        await session.select_store("s1")

        result = await session.set_status(5, "delivered")

        assert result.matched_column == "id"
        stored = {r["id"]: r["status"] for r in backend.rows("grocery_orders")}
        shown = {o.id: o.status for o in session.snapshot.orders}
        assert stored == {5: "delivered", 6: "pending"}
        assert shown == stored
        await session.close()

    async def test_failed_write_leaves_snapshot(self, session: StoreSession) -> None:
        before = await session.select_store("s1")
        result = await session.set_status(999, "ready")

        assert not result.ok
        assert session.snapshot is before

    async def test_before_any_store(self, session: StoreSession) -> None:
        result = await session.set_status(1, "ready")
        assert not result.ok
        assert result.failure is not None
        assert "not detected" in result.failure.detail


class TestClose:
    async def test_close_resets(self, session: StoreSession) -> None:
        await session.select_store("s1")
        await session.close()

        assert session.context_id is None
        assert session.binding is None
        assert session.snapshot.orders == []
