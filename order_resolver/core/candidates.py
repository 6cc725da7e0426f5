"""Candidate registry - static table/column options per logical entity.

A spec lists candidate tables in probing order and, per role, candidate
column names in probing order. Column combinations are enumerated as the
cartesian product of the role candidates, in declared role order:

    roles = (ORDER_ID, ITEM_ID)
    ORDER_ID: order_id, grocery_order_id
    ITEM_ID:  grocery_item_id, item_id

    -> (order_id, grocery_item_id), (order_id, item_id),
       (grocery_order_id, grocery_item_id), (grocery_order_id, item_id)
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from order_resolver.core.enums import EntityKind, Role
from order_resolver.core.exceptions import (
    DuplicateSpecError,
    SpecDefinitionError,
    SpecNotFoundError,
)


@dataclass(frozen=True)
class CandidateSpec:
    """Immutable candidate options for one logical entity.

    Args:
        entity_kind: The logical entity this spec describes.
        tables: Candidate table names, in probing order.
        columns: Candidate column names per role, in probing order. The
            mapping's iteration order is the role enumeration order.
        scope_role: The role whose column scopes probes to a context (a
            store id for orders, the fetched order ids for line items).
        optional_roles: Roles that may be absent from a bound table. They are
            enumerated with a trailing ``None`` option.
    """

    entity_kind: EntityKind
    tables: tuple[str, ...]
    columns: Mapping[Role, tuple[str, ...]]
    scope_role: Role
    optional_roles: frozenset[Role] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.tables:
            raise SpecDefinitionError(f"Spec for '{self.entity_kind.value}' has no tables")
        for role, names in self.columns.items():
            if not names:
                raise SpecDefinitionError(
                    f"Spec for '{self.entity_kind.value}' has no candidates for role "
                    f"'{role.value}'"
                )
        if self.scope_role not in self.columns or self.scope_role in self.optional_roles:
            raise SpecDefinitionError(
                f"Scope role '{self.scope_role.value}' must be a required role"
            )
        unknown = self.optional_roles - set(self.columns)
        if unknown:
            raise SpecDefinitionError(
                f"Optional roles {sorted(r.value for r in unknown)} have no candidates"
            )

    @property
    def roles(self) -> tuple[Role, ...]:
        return tuple(self.columns)

    def column_combinations(self) -> Iterator[dict[Role, str | None]]:
        """Yield every role -> column assignment in enumeration order."""
        options: list[tuple[str | None, ...]] = []
        for role in self.roles:
            names: tuple[str | None, ...] = self.columns[role]
            if role in self.optional_roles:
                names = (*names, None)
            options.append(names)
        for combo in itertools.product(*options):
            yield dict(zip(self.roles, combo, strict=True))

    def combination_count(self) -> int:
        count = 1
        for role in self.roles:
            count *= len(self.columns[role]) + (1 if role in self.optional_roles else 0)
        return count


# The restaurant "orders" table is deliberately absent: a grocery store id
# must never be matched against restaurant orders.
GROCERY_ORDERS = CandidateSpec(
    entity_kind=EntityKind.ORDERS,
    tables=("grocery_orders", "orders_grocery"),
    columns={Role.STORE_ID: ("store_id", "grocery_store_id")},
    scope_role=Role.STORE_ID,
)

GROCERY_ORDER_ITEMS = CandidateSpec(
    entity_kind=EntityKind.LINE_ITEMS,
    tables=("grocery_order_items", "order_items_grocery", "grocery_items_order"),
    columns={
        Role.ORDER_ID: ("order_id", "grocery_order_id"),
        Role.ITEM_ID: ("grocery_item_id", "item_id", "product_id"),
        Role.QUANTITY: ("qty", "quantity", "count"),
    },
    scope_role=Role.ORDER_ID,
    optional_roles=frozenset({Role.QUANTITY}),
)


class CandidateRegistry:
    """Holds one CandidateSpec per entity kind.

    The registry is immutable after construction: build it once at startup,
    then read-only access for the lifetime of the application.

    Raises:
        DuplicateSpecError: If two specs share an entity kind.
    """

    def __init__(self, specs: tuple[CandidateSpec, ...] | list[CandidateSpec]) -> None:
        self._specs: dict[EntityKind, CandidateSpec] = {}
        for spec in specs:
            if spec.entity_kind in self._specs:
                raise DuplicateSpecError(spec.entity_kind.value)
            self._specs[spec.entity_kind] = spec

    @classmethod
    def default(cls) -> CandidateRegistry:
        """Registry with the grocery orders and line-items specs."""
        return cls([GROCERY_ORDERS, GROCERY_ORDER_ITEMS])

    def get(self, entity_kind: EntityKind) -> CandidateSpec:
        """Look up the spec for an entity kind.

        Raises:
            SpecNotFoundError: If nothing is registered for the kind.
        """
        try:
            return self._specs[entity_kind]
        except KeyError:
            raise SpecNotFoundError(entity_kind.value) from None

    def has(self, entity_kind: EntityKind) -> bool:
        return entity_kind in self._specs

    @property
    def entity_kinds(self) -> list[EntityKind]:
        """Registered entity kinds, sorted by value."""
        return sorted(self._specs, key=lambda kind: kind.value)

    def __len__(self) -> int:
        return len(self._specs)
