"""Derived read-only records built on every aggregation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from order_resolver.mapping.fields import (
    ITEM_FIELDS,
    ORDER_FIELDS,
    clean_str,
    read_field,
    to_datetime,
    to_number,
)

DEFAULT_ITEM_NAME = "Item"


@dataclass(frozen=True)
class CustomerIdentity:
    """Who placed an order, as far as the row tells."""

    customer_id: str = ""
    phone: str = ""
    name: str = ""


@dataclass(frozen=True)
class LineItemRecord:
    id: Any | None
    referenced_product_id: Any | None
    quantity: float
    display_name: str


@dataclass(frozen=True)
class OrderRecord:
    id: Any
    external_order_number: str | None
    status: str
    created_at: datetime | None
    total_amount: float
    customer_identity: CustomerIdentity
    items: list[LineItemRecord] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def address(self) -> str:
        parts = [
            clean_str(read_field(self.raw, name, ORDER_FIELDS))
            for name in ("address_line1", "address_line2", "landmark")
        ]
        return ", ".join(p for p in parts if p)

    @property
    def item_count(self) -> float:
        """Total quantity over all lines; a line without a quantity counts as 1."""
        return sum(item.quantity for item in self.items)


def order_from_row(row: dict[str, Any]) -> OrderRecord:
    """Build an OrderRecord from a raw orders row. Items start empty."""
    number = read_field(row, "order_number", ORDER_FIELDS)
    return OrderRecord(
        id=row.get("id"),
        external_order_number=clean_str(number) or None,
        status=clean_str(read_field(row, "status", ORDER_FIELDS)),
        created_at=to_datetime(read_field(row, "created_at", ORDER_FIELDS)),
        total_amount=to_number(read_field(row, "total", ORDER_FIELDS)),
        customer_identity=CustomerIdentity(
            customer_id=clean_str(read_field(row, "customer_id", ORDER_FIELDS)),
            phone=clean_str(read_field(row, "customer_phone", ORDER_FIELDS)),
            name=clean_str(read_field(row, "customer_name", ORDER_FIELDS)),
        ),
        items=[],
        raw=dict(row),
    )


def item_from_row(
    row: dict[str, Any],
    product_names: dict[str, str],
    item_id_column: str | None = None,
    quantity_column: str | None = None,
) -> LineItemRecord:
    """Build a LineItemRecord from a raw line-items row.

    Display name falls back: stored name, resolved product name, "Item".
    """
    product_id = read_field(row, "product_id", ITEM_FIELDS, preferred=item_id_column)
    quantity = to_number(
        read_field(row, "quantity", ITEM_FIELDS, preferred=quantity_column), default=1.0
    )
    stored_name = clean_str(read_field(row, "name", ITEM_FIELDS))
    resolved_name = product_names.get(str(product_id), "") if product_id is not None else ""
    return LineItemRecord(
        id=row.get("id"),
        referenced_product_id=product_id,
        quantity=quantity or 1.0,
        display_name=stored_name or resolved_name or DEFAULT_ITEM_NAME,
    )
