"""Store session - one store selection's binding, pipeline and snapshot.

A session owns exactly one context at a time. Selecting another store tears
the old context down (timer, binding, snapshot) and bumps a generation
counter; any pipeline still running for an older generation finishes
harmlessly and its result is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from order_resolver.adapters.protocol import AsyncBackend
from order_resolver.core.candidates import CandidateRegistry
from order_resolver.core.config import ResolverConfig
from order_resolver.core.enums import EntityKind
from order_resolver.core.resolver import BindingResolver, ResolvedBinding, Unresolved
from order_resolver.core.scheduler import Coalescer
from order_resolver.mapping.customers import (
    CustomerAggregate,
    CustomerIndexBuilder,
    group_customers,
)
from order_resolver.mapping.model import OrderRecord
from order_resolver.repository.aggregator import RelationAggregator
from order_resolver.repository.mutation import MutationResult, MutationRouter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything the owner views render for one context. Replaced, never edited."""

    context_id: Any
    orders_binding: ResolvedBinding | None = None
    items_binding: ResolvedBinding | Unresolved | None = None
    orders: list[OrderRecord] = field(default_factory=list)
    customers: list[CustomerAggregate] = field(default_factory=list)
    diagnostic: str | None = None

    @classmethod
    def empty(cls, context_id: Any, diagnostic: str | None = None) -> SessionSnapshot:
        return cls(context_id=context_id, diagnostic=diagnostic)


class StoreSession:
    """Context-scoped facade over resolver, aggregator, index and router.

    Args:
        backend: Any AsyncBackend implementation.
        registry: Candidate specs; defaults to the built-in grocery specs.
        config: Resolver configuration.

    Example:
        session = StoreSession(backend)
        await session.select_store("store-1")
        print(len(session.snapshot.orders))
    """

    def __init__(
        self,
        backend: AsyncBackend,
        registry: CandidateRegistry | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.resolver = BindingResolver(backend, registry, self.config)
        self.aggregator = RelationAggregator(backend, self.resolver, self.config)
        self.customer_index = CustomerIndexBuilder(backend, self.config)
        self.router = MutationRouter(backend, self.config)
        self._coalescer = Coalescer(self.refresh, self.config.coalesce_window)

        self._generation = 0
        self._context_id: Any = None
        self._binding: ResolvedBinding | None = None
        self._lock = asyncio.Lock()
        self._snapshot = SessionSnapshot.empty(None)

    @property
    def context_id(self) -> Any:
        return self._context_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def binding(self) -> ResolvedBinding | None:
        """The orders binding of the current context, once resolved."""
        return self._binding

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def coalescer(self) -> Coalescer:
        return self._coalescer

    async def select_store(self, context_id: Any) -> SessionSnapshot:
        """Switch to *context_id* and load it."""
        self._teardown()
        self._generation += 1
        self._context_id = context_id
        self._snapshot = SessionSnapshot.empty(context_id)
        logger.info("Selected store %r (generation %d)", context_id, self._generation)
        return await self.refresh()

    async def refresh(self) -> SessionSnapshot:
        """Run the pipeline for the current context.

        Runs are queued behind the context's lock. A run that finishes after
        a context switch leaves the snapshot untouched.
        """
        generation = self._generation
        context_id = self._context_id
        lock = self._lock
        if context_id is None:
            return self._snapshot

        async with lock:
            if generation != self._generation:
                return self._snapshot
            snapshot = await self._run_pipeline(generation, context_id)
            if generation != self._generation:
                logger.debug("Discarding stale pipeline result for %r", context_id)
                return self._snapshot
            self._snapshot = snapshot
            return snapshot

    async def _run_pipeline(self, generation: int, context_id: Any) -> SessionSnapshot:
        binding = self._binding
        if binding is None:
            resolved = await self.resolver.resolve(EntityKind.ORDERS, context_id)
            if not resolved:
                return SessionSnapshot.empty(context_id, resolved.diagnostic)
            if self._binding is None and generation == self._generation:
                self._binding = resolved
            binding = resolved

        result = await self.aggregator.aggregate_detailed(binding, context_id)
        customers = await self.customer_index.build_index(result.orders)
        diagnostic = None
        if isinstance(result.items_binding, Unresolved):
            diagnostic = result.items_binding.diagnostic
        return SessionSnapshot(
            context_id=context_id,
            orders_binding=binding,
            items_binding=result.items_binding,
            orders=result.orders,
            customers=customers,
            diagnostic=diagnostic,
        )

    def notify_change(self) -> None:
        """Something changed upstream; refresh once the burst settles."""
        if self._context_id is None:
            return
        self._coalescer.signal()

    async def set_status(self, order_id: Any, new_status: str) -> MutationResult:
        """Write *new_status* through the cached binding and patch the snapshot."""
        generation = self._generation
        result = await self.router.set_status(self._binding, order_id, new_status)
        if result.ok and generation == self._generation:
            self._snapshot = _patched(
                self._snapshot, result.matched_column, order_id, new_status
            )
        return result

    async def close(self) -> None:
        await self._coalescer.drain()
        self._teardown()
        self._context_id = None
        self._generation += 1
        self._snapshot = SessionSnapshot.empty(None)

    def _teardown(self) -> None:
        self._coalescer.cancel()
        self._binding = None
        self._lock = asyncio.Lock()


def _patched(
    snapshot: SessionSnapshot, column: str | None, order_id: Any, status: str
) -> SessionSnapshot:
    """Snapshot with *status* applied to the orders whose *column* matched *order_id*."""
    wanted = str(order_id)
    orders = [
        replace(o, status=status) if _column_value(o, column) == wanted else o
        for o in snapshot.orders
    ]

    previous = {c.group_key: c for c in snapshot.customers}
    customers = group_customers(orders)
    for agg in customers:
        old = previous.get(agg.group_key)
        if old is not None:
            agg.display_name = old.display_name
            agg.avatar_url = old.avatar_url
    return replace(snapshot, orders=orders, customers=customers)


def _column_value(order: OrderRecord, column: str | None) -> str | None:
    if column is None:
        return None
    value = order.raw.get(column)
    return None if value is None else str(value)
