"""Unit tests for CandidateSpec and CandidateRegistry."""

from __future__ import annotations

import pytest

from order_resolver.core.candidates import (
    GROCERY_ORDER_ITEMS,
    GROCERY_ORDERS,
    CandidateRegistry,
    CandidateSpec,
)
from order_resolver.core.enums import EntityKind, Role
from order_resolver.core.exceptions import (
    DuplicateSpecError,
    SpecDefinitionError,
    SpecNotFoundError,
)


class TestCandidateSpec:
    def test_combinations_follow_declared_role_order(self) -> None:
        spec = CandidateSpec(
            entity_kind=EntityKind.LINE_ITEMS,
            tables=("t",),
            columns={
                Role.ORDER_ID: ("order_id", "grocery_order_id"),
                Role.ITEM_ID: ("grocery_item_id", "item_id"),
            },
            scope_role=Role.ORDER_ID,
        )
        combos = [(c[Role.ORDER_ID], c[Role.ITEM_ID]) for c in spec.column_combinations()]
        assert combos == [
            ("order_id", "grocery_item_id"),
            ("order_id", "item_id"),
            ("grocery_order_id", "grocery_item_id"),
            ("grocery_order_id", "item_id"),
        ]

    def test_optional_role_enumerated_last_as_none(self) -> None:
        quantities = [c[Role.QUANTITY] for c in GROCERY_ORDER_ITEMS.column_combinations()][:4]
        assert quantities == ["qty", "quantity", "count", None]

    def test_combination_count(self) -> None:
        assert GROCERY_ORDERS.combination_count() == 2
        assert GROCERY_ORDER_ITEMS.combination_count() == 2 * 3 * 4
        assert len(list(GROCERY_ORDER_ITEMS.column_combinations())) == 24

    def test_orders_spec_never_targets_restaurant_orders(self) -> None:
        assert "orders" not in GROCERY_ORDERS.tables

    def test_empty_tables_rejected(self) -> None:
        with pytest.raises(SpecDefinitionError, match="no tables"):
            CandidateSpec(
                entity_kind=EntityKind.ORDERS,
                tables=(),
                columns={Role.STORE_ID: ("store_id",)},
                scope_role=Role.STORE_ID,
            )

    def test_role_without_candidates_rejected(self) -> None:
        with pytest.raises(SpecDefinitionError, match="no candidates"):
            CandidateSpec(
                entity_kind=EntityKind.ORDERS,
                tables=("t",),
                columns={Role.STORE_ID: ()},
                scope_role=Role.STORE_ID,
            )

    def test_optional_scope_role_rejected(self) -> None:
        with pytest.raises(SpecDefinitionError, match="required role"):
            CandidateSpec(
                entity_kind=EntityKind.ORDERS,
                tables=("t",),
                columns={Role.STORE_ID: ("store_id",)},
                scope_role=Role.STORE_ID,
                optional_roles=frozenset({Role.STORE_ID}),
            )

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            GROCERY_ORDERS.tables = ("other",)  # type: ignore[misc]


class TestCandidateRegistry:
    def test_default_registry(self) -> None:
        registry = CandidateRegistry.default()
        assert len(registry) == 2
        assert registry.get(EntityKind.ORDERS) is GROCERY_ORDERS
        assert registry.entity_kinds == [EntityKind.LINE_ITEMS, EntityKind.ORDERS]

    def test_duplicate_rejected(self) -> None:
        with pytest.raises(DuplicateSpecError) as exc_info:
            CandidateRegistry([GROCERY_ORDERS, GROCERY_ORDERS])
        assert exc_info.value.entity_kind == "orders"

    def test_missing_kind(self) -> None:
        registry = CandidateRegistry([GROCERY_ORDERS])
        assert not registry.has(EntityKind.LINE_ITEMS)
        with pytest.raises(SpecNotFoundError, match="line_items"):
            registry.get(EntityKind.LINE_ITEMS)
