"""OrderResolver - schema-adaptive order resolution and aggregation engine."""

from __future__ import annotations

from order_resolver.core.candidates import (
    GROCERY_ORDER_ITEMS,
    GROCERY_ORDERS,
    CandidateRegistry,
    CandidateSpec,
)
from order_resolver.core.config import ResolverConfig
from order_resolver.core.connection import BackendConfig, open_backend
from order_resolver.core.enums import EntityKind, FailureKind, Role
from order_resolver.core.exceptions import (
    AdapterError,
    BackendError,
    DuplicateSpecError,
    EntityMissing,
    InvalidIdentifierError,
    MutationFailure,
    OrderResolverError,
    ProbeError,
    RegistryError,
    ShapeMismatch,
    SpecDefinitionError,
    SpecNotFoundError,
    TransientOrPermission,
    UnresolvedBindingError,
)
from order_resolver.core.query import Eq, In
from order_resolver.core.resolver import BindingResolver, ResolvedBinding, Unresolved
from order_resolver.core.scheduler import Coalescer
from order_resolver.core.session import SessionSnapshot, StoreSession
from order_resolver.mapping.customers import CustomerAggregate, CustomerIndexBuilder
from order_resolver.mapping.model import CustomerIdentity, LineItemRecord, OrderRecord
from order_resolver.repository.aggregator import RelationAggregator
from order_resolver.repository.mutation import MutationResult, MutationRouter

__all__ = [
    # Registry
    "CandidateSpec",
    "CandidateRegistry",
    "GROCERY_ORDERS",
    "GROCERY_ORDER_ITEMS",
    # Config
    "ResolverConfig",
    "BackendConfig",
    "open_backend",
    # Filters
    "Eq",
    "In",
    # Resolution
    "BindingResolver",
    "ResolvedBinding",
    "Unresolved",
    # Aggregation
    "RelationAggregator",
    "CustomerIndexBuilder",
    "CustomerAggregate",
    "OrderRecord",
    "LineItemRecord",
    "CustomerIdentity",
    # Mutation
    "MutationRouter",
    "MutationResult",
    # Session
    "StoreSession",
    "SessionSnapshot",
    "Coalescer",
    # Enums
    "EntityKind",
    "Role",
    "FailureKind",
    # Exceptions
    "OrderResolverError",
    "RegistryError",
    "SpecNotFoundError",
    "DuplicateSpecError",
    "SpecDefinitionError",
    "ProbeError",
    "EntityMissing",
    "ShapeMismatch",
    "TransientOrPermission",
    "UnresolvedBindingError",
    "MutationFailure",
    "BackendError",
    "AdapterError",
    "InvalidIdentifierError",
]
