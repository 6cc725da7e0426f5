"""Repository layer - reads and writes through a resolved binding."""

from __future__ import annotations

from order_resolver.repository.aggregator import AggregationResult, RelationAggregator
from order_resolver.repository.base import AsyncRepository
from order_resolver.repository.mutation import MutationResult, MutationRouter

__all__ = [
    "AsyncRepository",
    "RelationAggregator",
    "AggregationResult",
    "MutationRouter",
    "MutationResult",
]
