"""Relation aggregator - orders with their line items attached.

Pipeline per call:

1. fetch order rows through the resolved orders binding
2. resolve a line-items binding scoped to the fetched order ids
3. bulk-fetch line items by the discovered order-id column
4. batch-resolve product display names
5. group items by order id and attach (``[]`` when none)

A failure in steps 2-4 never costs step 1's orders: they come back with
empty item lists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from order_resolver.adapters.protocol import AsyncBackend
from order_resolver.core.classify import classify_error
from order_resolver.core.config import ResolverConfig
from order_resolver.core.enums import EntityKind, Role
from order_resolver.core.exceptions import ShapeMismatch
from order_resolver.core.query import Eq, In
from order_resolver.core.resolver import BindingResolver, ResolvedBinding, Unresolved
from order_resolver.mapping.fields import ITEM_FIELDS, clean_str, read_field
from order_resolver.mapping.model import (
    DEFAULT_ITEM_NAME,
    LineItemRecord,
    OrderRecord,
    item_from_row,
    order_from_row,
)
from order_resolver.repository.base import AsyncRepository

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class AggregationResult:
    """Orders of one pass plus the line-items binding it used."""

    orders: list[OrderRecord] = field(default_factory=list)
    items_binding: ResolvedBinding | Unresolved | None = None


def _newest_first(orders: list[OrderRecord]) -> list[OrderRecord]:
    return sorted(orders, key=lambda o: o.created_at or _EPOCH, reverse=True)


def _embedded_items(raw: dict[str, Any]) -> list[LineItemRecord]:
    """Items stored inline on the order row (``order_items`` / ``items``)."""
    for key in ("order_items", "items"):
        value = raw.get(key)
        if isinstance(value, list):
            return [item_from_row(v, {}) for v in value if isinstance(v, dict)]
    return []


class RelationAggregator(AsyncRepository):
    """Builds OrderRecords with attached line items for one context.

    Args:
        backend: Any AsyncBackend implementation.
        resolver: Resolver used for the line-items binding. Defaults to one
            over the same backend and config.
        config: Resolver configuration.
    """

    def __init__(
        self,
        backend: AsyncBackend,
        resolver: BindingResolver | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        super().__init__(backend, config)
        self.resolver = resolver or BindingResolver(backend, config=self.config)

    async def aggregate(
        self,
        orders_binding: ResolvedBinding | Unresolved | None,
        context_id: Any,
    ) -> list[OrderRecord]:
        """Orders for *context_id*, newest first, each with ``items`` set."""
        result = await self.aggregate_detailed(orders_binding, context_id)
        return result.orders

    async def aggregate_detailed(
        self,
        orders_binding: ResolvedBinding | Unresolved | None,
        context_id: Any,
    ) -> AggregationResult:
        """Like ``aggregate``, also reporting the line-items binding."""
        if not orders_binding:
            return AggregationResult()

        try:
            orders = await self._fetch_orders(orders_binding, context_id)
        except Exception as e:
            logger.warning(
                "Could not load orders from %s for %r: %s", orders_binding.table, context_id, e
            )
            return AggregationResult()

        order_ids = [o.id for o in orders if o.id is not None]
        items_binding, items_by_order = await self._load_items(order_ids)

        return AggregationResult(
            orders=[
                replace(o, items=items_by_order.get(str(o.id)) or _embedded_items(o.raw))
                for o in orders
            ],
            items_binding=items_binding,
        )

    async def _fetch_orders(self, binding: ResolvedBinding, context_id: Any) -> list[OrderRecord]:
        store_column = binding.column(Role.STORE_ID)
        if store_column is None:
            raise ValueError(f"Orders binding for {binding.table} has no store id column")
        filters = [Eq(store_column, context_id)]
        try:
            rows = await self.backend.select(
                binding.table,
                filters=filters,
                order_by=self.config.created_at_column,
                descending=True,
                limit=self.config.order_limit,
            )
        except Exception as e:
            if not isinstance(classify_error(e, binding.table), ShapeMismatch):
                raise
            # No timestamp column to order by; sort what we get instead.
            logger.info(
                "Ordering by %s unavailable on %s", self.config.created_at_column, binding.table
            )
            rows = await self.backend.select(
                binding.table, filters=filters, limit=self.config.order_limit
            )
            return _newest_first([order_from_row(r) for r in rows])
        return [order_from_row(r) for r in rows]

    async def _load_items(
        self, order_ids: list[Any]
    ) -> tuple[ResolvedBinding | Unresolved | None, dict[str, list[LineItemRecord]]]:
        if not order_ids:
            return None, {}
        binding: ResolvedBinding | Unresolved | None = None
        try:
            binding = await self.resolver.resolve(EntityKind.LINE_ITEMS, order_ids)
            if not binding:
                return binding, {}

            order_column = binding.column(Role.ORDER_ID)
            item_column = binding.column(Role.ITEM_ID)
            quantity_column = binding.column(Role.QUANTITY)
            rows = await self.backend.select(binding.table, filters=[In(order_column, order_ids)])
        except Exception as e:
            logger.warning("Line items unavailable, returning orders without items: %s", e)
            return binding, {}

        product_ids: list[Any] = []
        seen: set[str] = set()
        for row in rows:
            pid = read_field(row, "product_id", ITEM_FIELDS, preferred=item_column)
            if pid is not None and str(pid) not in seen:
                seen.add(str(pid))
                product_ids.append(pid)
        names = await self._product_names(product_ids)

        grouped: dict[str, list[LineItemRecord]] = {}
        for row in rows:
            oid = row.get(order_column)
            if oid is None:
                continue
            grouped.setdefault(str(oid), []).append(
                item_from_row(row, names, item_column, quantity_column)
            )
        return binding, grouped

    async def _product_names(self, product_ids: list[Any]) -> dict[str, str]:
        """Product id -> display name. Missing ids are simply absent."""
        if not product_ids:
            return {}
        id_column = self.config.product_id_column
        name_column = self.config.product_name_column
        try:
            rows = await self.backend.select_by_ids(
                self.config.product_table,
                id_column,
                product_ids,
                columns=[id_column, name_column],
            )
        except Exception as e:
            logger.warning("Product name lookup on %s failed: %s", self.config.product_table, e)
            return {}
        return {
            str(row.get(id_column)): clean_str(row.get(name_column)) or DEFAULT_ITEM_NAME
            for row in rows
        }
