"""Entity, role, and status enumerations."""

from __future__ import annotations

from enum import Enum


class EntityKind(Enum):
    """Logical entities whose concrete table is discovered at runtime."""

    ORDERS = "orders"
    LINE_ITEMS = "line_items"


class Role(Enum):
    """Foreign-key and value roles a bound column can play."""

    STORE_ID = "store_id"
    ORDER_ID = "order_id"
    ITEM_ID = "item_id"
    QUANTITY = "quantity"


class FailureKind(Enum):
    """Classification of a failed probe."""

    ENTITY_MISSING = "entity_missing"
    SHAPE_MISMATCH = "shape_mismatch"
    TRANSIENT_OR_PERMISSION = "transient_or_permission"


DELIVERED_STATUSES = frozenset({"delivered", "completed"})
PENDING_STATUSES = frozenset({"pending", "placed", "new", "confirmed"})
REJECTED_STATUSES = frozenset({"rejected", "cancelled", "canceled", "failed"})

KNOWN_STATUSES = (
    "pending",
    "preparing",
    "ready",
    "on_the_way",
    "delivered",
    "rejected",
    "cancelled",
)
