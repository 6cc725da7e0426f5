"""Owner dashboard helpers: status tabs, search, headline counts and the weekly chart."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo

from order_resolver.core.enums import (
    DELIVERED_STATUSES,
    KNOWN_STATUSES,
    PENDING_STATUSES,
    REJECTED_STATUSES,
)
from order_resolver.mapping.model import OrderRecord

_WHITESPACE = re.compile(r"\s+")

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class WeeklyBucket:
    day: str
    revenue: float
    orders: int


@dataclass(frozen=True)
class DashboardStats:
    orders_today: int
    pending: int
    delivered_7d: int


def normalize_status(value: str | None) -> str:
    """``" On The Way "`` -> ``"on_the_way"``; blank -> ``"pending"``."""
    text = _WHITESPACE.sub("_", str(value or "").strip().lower())
    return text or "pending"


def status_counts(orders: Iterable[OrderRecord]) -> dict[str, int]:
    """Counts for ``all`` and every known status. Unknown statuses only count in ``all``."""
    counts = {"all": 0, **{status: 0 for status in KNOWN_STATUSES}}
    for order in orders:
        counts["all"] += 1
        status = normalize_status(order.status)
        if status in counts:
            counts[status] += 1
    return counts


def filter_orders(
    orders: Iterable[OrderRecord],
    status: str | None = None,
    search: str = "",
) -> list[OrderRecord]:
    """Status tab plus case-insensitive search over id, name, phone and address."""
    result = list(orders)
    if status and status != "all":
        wanted = normalize_status(status)
        result = [o for o in result if normalize_status(o.status) == wanted]

    query = search.strip().lower()
    if query:
        result = [o for o in result if query in _haystack(o)]
    return result


def _haystack(order: OrderRecord) -> str:
    identity = order.customer_identity
    fields = (
        "" if order.id is None else str(order.id),
        order.external_order_number or "",
        identity.name,
        identity.phone,
        order.address,
    )
    return "\n".join(fields).lower()


def _local_day(moment: datetime, tz: tzinfo) -> date:
    return moment.astimezone(tz).date()


def weekly_buckets(
    orders: Iterable[OrderRecord],
    today: date | None = None,
    tz: tzinfo = timezone.utc,
) -> list[WeeklyBucket]:
    """Revenue and order count per weekday over the last seven days.

    Days run Mon..Sun and are taken in *tz*, which defaults to UTC; pass the
    store's zone to bucket by its local calendar. Rejected-class orders are
    left out of both series.
    """
    today = today or datetime.now(tz).date()
    start = today - timedelta(days=6)
    revenue = dict.fromkeys(WEEKDAYS, 0.0)
    counts = dict.fromkeys(WEEKDAYS, 0)

    for order in orders:
        if order.created_at is None:
            continue
        day = _local_day(order.created_at, tz)
        if day < start or day > today:
            continue
        if order.status.lower() in REJECTED_STATUSES:
            continue
        label = WEEKDAYS[day.weekday()]
        revenue[label] += order.total_amount
        counts[label] += 1

    return [WeeklyBucket(day=d, revenue=revenue[d], orders=counts[d]) for d in WEEKDAYS]


def dashboard_stats(
    orders: Iterable[OrderRecord],
    today: date | None = None,
    tz: tzinfo = timezone.utc,
) -> DashboardStats:
    """Headline counts for the owner dashboard.

    ``orders_today`` counts orders created on *today* or later. ``delivered_7d``
    counts delivered-class orders created in the seven days ending *today*.
    Dates are taken in *tz*.
    """
    today = today or datetime.now(tz).date()
    week_start = today - timedelta(days=6)
    orders_today = pending = delivered_7d = 0

    for order in orders:
        status = normalize_status(order.status)
        if status in PENDING_STATUSES:
            pending += 1
        if order.created_at is None:
            continue
        day = _local_day(order.created_at, tz)
        if day >= today:
            orders_today += 1
        if status in DELIVERED_STATUSES and day >= week_start:
            delivered_7d += 1

    return DashboardStats(orders_today=orders_today, pending=pending, delivered_7d=delivered_7d)
