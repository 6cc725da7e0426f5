"""order_resolver exception hierarchy.

Probe errors are produced and consumed inside the resolver. Only mutation
failures and explicit raising helpers ever reach callers.
"""

from __future__ import annotations


class OrderResolverError(Exception):
    """Base exception for all order_resolver errors."""


# --- Registry ---


class RegistryError(OrderResolverError):
    """Base for candidate registry errors."""


class SpecNotFoundError(RegistryError):
    """Raised when no candidate spec is registered for an entity kind."""

    def __init__(self, entity_kind: str) -> None:
        self.entity_kind = entity_kind
        super().__init__(f"No candidate spec registered for '{entity_kind}'")


class DuplicateSpecError(RegistryError):
    """Raised when two candidate specs claim the same entity kind."""

    def __init__(self, entity_kind: str) -> None:
        self.entity_kind = entity_kind
        super().__init__(f"Duplicate candidate spec for '{entity_kind}'")


class SpecDefinitionError(RegistryError):
    """Raised when a candidate spec is malformed."""


# --- Probing ---


class ProbeError(OrderResolverError):
    """Base for classified probe failures."""

    def __init__(self, table: str, message: str, column: str | None = None) -> None:
        self.table = table
        self.column = column
        self.message = message
        super().__init__(f"Probe of '{table}' failed: {message}")


class EntityMissing(ProbeError):
    """The probed table does not exist or is not visible."""


class ShapeMismatch(ProbeError):
    """The table exists but a referenced column does not."""


class TransientOrPermission(ProbeError):
    """Permission, network, or otherwise unclassified probe failure."""


class UnresolvedBindingError(OrderResolverError):
    """Raised on request when every candidate combination was exhausted."""

    def __init__(self, entity_kind: str, diagnostic: str) -> None:
        self.entity_kind = entity_kind
        self.diagnostic = diagnostic
        super().__init__(f"Could not resolve a binding for '{entity_kind}': {diagnostic}")


# --- Mutation ---


class MutationFailure(OrderResolverError):
    """Raised on request when a status update failed on every id column."""

    def __init__(self, order_id: object, detail: str) -> None:
        self.order_id = order_id
        self.detail = detail
        super().__init__(f"Status update for order '{order_id}' failed: {detail}")


# --- Backend ---


class BackendError(OrderResolverError):
    """Base for backend adapter errors."""


class AdapterError(BackendError):
    """Raised when an adapter cannot be loaded or configured."""


class InvalidIdentifierError(BackendError):
    """Raised when a table or column name is not a plain SQL identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Invalid SQL identifier: {identifier!r}")
