"""Engine configuration.

ResolverConfig is a Pydantic model shared by the resolver, aggregator,
customer index builder, mutation router and store session.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ResolverConfig(BaseModel):
    """Tunables for resolution, aggregation and mutation."""

    order_limit: int = Field(default=500, gt=0)
    coalesce_window: float = Field(default=0.25, ge=0)

    primary_id_column: str = "id"
    secondary_id_column: str = "order_id"
    status_column: str = "status"
    created_at_column: str = "created_at"

    product_table: str = "grocery_items"
    product_id_column: str = "id"
    product_name_column: str = "name"

    profile_table: str = "profiles"
    profile_id_column: str = "user_id"
    profile_lookup_limit: int = Field(default=500, gt=0)

    # Stop resolution on permission/transient probe failures instead of
    # advancing to the next candidate.
    strict_permissions: bool = False
