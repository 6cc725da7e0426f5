"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from order_resolver.adapters.memory import MemoryBackend
from order_resolver.core.config import ResolverConfig

ORDER_COLUMNS = [
    "id",
    "order_id",
    "store_id",
    "status",
    "created_at",
    "total_amount",
    "customer_user_id",
    "customer_phone",
    "customer_name",
    "delivery_address",
]

ITEM_COLUMNS = ["id", "order_id", "grocery_item_id", "qty", "name"]


def order_row(id: int, **overrides: Any) -> dict[str, Any]:
    """An orders row for store ``s1`` with sensible defaults."""
    row: dict[str, Any] = {
        "id": id,
        "order_id": f"GR-{id:04d}",
        "store_id": "s1",
        "status": "pending",
        "created_at": f"2026-10-{10 + id:02d}T12:00:00Z",
        "total_amount": 100.0,
        "customer_user_id": None,
        "customer_phone": None,
        "customer_name": None,
        "delivery_address": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def config() -> ResolverConfig:
    return ResolverConfig(coalesce_window=0.01)


@pytest.fixture
def backend() -> MemoryBackend:
    """A store whose data lives in the second candidate tables.

    Orders are in ``orders_grocery`` keyed by ``grocery_store_id``; items in
    ``order_items_grocery`` with ``quantity`` rather than ``qty``.
    """
    b = MemoryBackend()
    b.add_table(
        "orders_grocery",
        [c if c != "store_id" else "grocery_store_id" for c in ORDER_COLUMNS],
        [
            {**_without_store(order_row(1, total_amount=100.0)), "grocery_store_id": "s1"},
            {**_without_store(order_row(2, total_amount=200.0)), "grocery_store_id": "s1"},
            {**_without_store(order_row(3, total_amount=50.0)), "grocery_store_id": "s2"},
        ],
    )
    b.add_table(
        "order_items_grocery",
        ["id", "order_id", "product_id", "quantity"],
        [
            {"id": 10, "order_id": 1, "product_id": 501, "quantity": 2},
            {"id": 11, "order_id": 1, "product_id": 502, "quantity": 1},
            {"id": 12, "order_id": 3, "product_id": 501, "quantity": 4},
        ],
    )
    b.add_table(
        "grocery_items",
        ["id", "name"],
        [{"id": 501, "name": "Milk"}, {"id": 502, "name": "Bread"}],
    )
    b.add_table("profiles", ["user_id", "full_name", "avatar_url"])
    return b


def _without_store(row: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in row.items() if k != "store_id"}
