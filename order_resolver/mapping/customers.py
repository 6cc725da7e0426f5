"""Customer index - per-customer aggregates over an order set.

Grouping key precedence: stable customer id, then ``phone:<phone>``, then
``name:<name>``, then ``unknown:<order id>``, so every order lands in
exactly one group. Cancelled/rejected orders count towards ``orders_count``
but never towards revenue.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from order_resolver.core.enums import DELIVERED_STATUSES, REJECTED_STATUSES
from order_resolver.mapping.fields import PROFILE_FIELDS, clean_str, read_field
from order_resolver.mapping.model import OrderRecord
from order_resolver.repository.base import AsyncRepository

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class CustomerAggregate:
    group_key: str
    display_name: str
    phone: str
    customer_id: str = ""
    avatar_url: str | None = None
    orders_count: int = 0
    delivered_count: int = 0
    rejected_count: int = 0
    revenue_total: float = 0.0
    first_order_at: datetime | None = None
    last_order_at: datetime | None = None
    orders: list[OrderRecord] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.display_name or "Customer"


def customer_key(order: OrderRecord) -> str:
    identity = order.customer_identity
    if identity.customer_id:
        return identity.customer_id
    if identity.phone:
        return f"phone:{identity.phone}"
    if identity.name:
        return f"name:{identity.name}"
    return f"unknown:{order.id if order.id is not None else ''}"


def group_customers(orders: Iterable[OrderRecord]) -> list[CustomerAggregate]:
    """Group *orders* into aggregates sorted by last order, newest first."""
    groups: dict[str, CustomerAggregate] = {}

    for order in orders:
        key = customer_key(order)
        identity = order.customer_identity
        agg = groups.get(key)
        if agg is None:
            agg = CustomerAggregate(
                group_key=key,
                display_name=identity.name or identity.phone,
                phone=identity.phone,
                customer_id=identity.customer_id,
            )
            groups[key] = agg

        agg.orders_count += 1
        status = order.status.lower()
        if status in DELIVERED_STATUSES:
            agg.delivered_count += 1
        if status in REJECTED_STATUSES:
            agg.rejected_count += 1
        else:
            agg.revenue_total += order.total_amount

        ts = order.created_at
        if ts is not None:
            if agg.last_order_at is None or ts > agg.last_order_at:
                agg.last_order_at = ts
            if agg.first_order_at is None or ts < agg.first_order_at:
                agg.first_order_at = ts

        agg.orders.append(order)

    return sorted(groups.values(), key=lambda a: a.last_order_at or _EPOCH, reverse=True)


def filter_customers(
    customers: Iterable[CustomerAggregate], search: str = ""
) -> list[CustomerAggregate]:
    """Case-insensitive search over display name, phone and customer id."""
    query = search.strip().lower()
    if not query:
        return list(customers)
    return [
        c
        for c in customers
        if any(query in value.lower() for value in (c.display_name, c.phone, c.customer_id))
    ]


class CustomerIndexBuilder(AsyncRepository):
    """Builds the customer index and enriches it from the profiles table."""

    async def build_index(self, orders: Iterable[OrderRecord]) -> list[CustomerAggregate]:
        aggregates = group_customers(orders)
        await self._enrich(aggregates)
        return aggregates

    async def _enrich(self, aggregates: list[CustomerAggregate]) -> None:
        ids = list(dict.fromkeys(a.customer_id for a in aggregates if a.customer_id))
        ids = ids[: self.config.profile_lookup_limit]
        if not ids:
            return

        id_column = self.config.profile_id_column
        try:
            rows = await self.backend.select_by_ids(self.config.profile_table, id_column, ids)
        except Exception as e:
            logger.warning("Profile lookup on %s failed: %s", self.config.profile_table, e)
            return

        profiles = {clean_str(row.get(id_column)): row for row in rows}
        for agg in aggregates:
            profile = profiles.get(agg.customer_id) if agg.customer_id else None
            if profile is None:
                continue
            avatar = clean_str(read_field(profile, "avatar_url", PROFILE_FIELDS))
            if avatar:
                agg.avatar_url = avatar
            # A name already meaningful to the owner is never replaced.
            name = clean_str(read_field(profile, "name", PROFILE_FIELDS))
            if name and (not agg.display_name.strip() or agg.display_name == agg.phone):
                agg.display_name = name
