"""Declared field synonyms and the typed row accessor.

Operators' rows name the same logical field differently (``total`` vs
``total_amount`` vs ``amount``). Each logical field declares its synonyms
once, in fallback order; every read goes through ``read_field``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

ORDER_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "order_number": ("order_id", "order_number", "order_no"),
    "status": ("status",),
    "created_at": ("created_at",),
    "total": ("total", "total_amount", "amount"),
    "customer_id": ("customer_user_id", "customer_id", "user_id"),
    "customer_phone": ("customer_phone", "phone", "mobile"),
    "customer_name": ("customer_name", "name"),
    "address_line1": ("delivery_address", "address", "address_line1", "customer_address"),
    "address_line2": ("address_line2",),
    "landmark": ("landmark",),
}

ITEM_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "product_id": ("grocery_item_id", "item_id", "product_id", "menu_item_id"),
    "quantity": ("qty", "quantity", "count"),
    "name": ("name", "item_name"),
}

PROFILE_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("user_id",),
    "name": ("full_name", "name"),
    "avatar_url": ("avatar_url",),
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def read_field(
    row: Mapping[str, Any],
    field: str,
    synonyms: Mapping[str, tuple[str, ...]],
    preferred: str | None = None,
) -> Any | None:
    """Return the first non-blank value among *field*'s synonyms.

    Args:
        row: The raw row.
        field: Logical field name, a key of *synonyms*.
        synonyms: The synonym map for the row's entity.
        preferred: A bound column to try before the declared synonyms.
    """
    names = synonyms[field]
    if preferred is not None:
        names = (preferred, *(n for n in names if n != preferred))
    for name in names:
        value = row.get(name)
        if not _is_blank(value):
            return value
    return None


def clean_str(value: Any) -> str:
    """Trimmed string form; ``None`` becomes empty."""
    if value is None:
        return ""
    return str(value).strip()


def to_number(value: Any, default: float = 0.0) -> float:
    """Numeric form of *value*, *default* when missing or not finite."""
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) else default


def to_datetime(value: Any) -> datetime | None:
    """Parse a timestamp column. Naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
