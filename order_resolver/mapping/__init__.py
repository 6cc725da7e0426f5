"""Mapping layer - rows into order records, customer aggregates and insights."""

from __future__ import annotations

from order_resolver.mapping.customers import (
    CustomerAggregate,
    CustomerIndexBuilder,
    customer_key,
    filter_customers,
    group_customers,
)
from order_resolver.mapping.insights import (
    DashboardStats,
    WeeklyBucket,
    dashboard_stats,
    filter_orders,
    normalize_status,
    status_counts,
    weekly_buckets,
)
from order_resolver.mapping.model import (
    CustomerIdentity,
    LineItemRecord,
    OrderRecord,
    item_from_row,
    order_from_row,
)

__all__ = [
    "OrderRecord",
    "LineItemRecord",
    "CustomerIdentity",
    "order_from_row",
    "item_from_row",
    "CustomerAggregate",
    "CustomerIndexBuilder",
    "customer_key",
    "group_customers",
    "filter_customers",
    "WeeklyBucket",
    "normalize_status",
    "status_counts",
    "filter_orders",
    "weekly_buckets",
    "DashboardStats",
    "dashboard_stats",
]
