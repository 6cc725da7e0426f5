"""Binding resolver - discovers which candidate table/columns actually work.

Candidates are enumerated declaratively as ``(candidate, validator)``
pairs and reduced with a first-success fold:

* success            -> stop, that candidate is the binding
* EntityMissing      -> skip every remaining candidate of the same table
* ShapeMismatch      -> next candidate
* TransientOrPermission -> next candidate (or stop, with strict_permissions)

Exhausting the list yields ``Unresolved``; ``resolve`` never raises for
backend failures.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from order_resolver.adapters.protocol import AsyncBackend
from order_resolver.core.candidates import CandidateRegistry, CandidateSpec
from order_resolver.core.classify import classify_error
from order_resolver.core.config import ResolverConfig
from order_resolver.core.enums import EntityKind, FailureKind, Role
from order_resolver.core.exceptions import (
    EntityMissing,
    ProbeError,
    ShapeMismatch,
    UnresolvedBindingError,
)
from order_resolver.core.query import Eq, Filter, In

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """One concrete (table, role -> column) combination to probe."""

    table: str
    columns: Mapping[Role, str | None]

    def describe(self) -> str:
        bound = ", ".join(f"{role.value}={col}" for role, col in self.columns.items())
        return f"{self.table}({bound})"


@dataclass(frozen=True)
class ResolvedBinding:
    """The winning combination for a logical entity."""

    entity_kind: EntityKind
    table: str
    columns_by_role: Mapping[Role, str | None]

    def column(self, role: Role) -> str | None:
        return self.columns_by_role.get(role)


@dataclass(frozen=True)
class ProbeAttempt:
    """Record of one failed probe, kept for operator diagnostics."""

    candidate: Candidate
    failure: FailureKind
    message: str


@dataclass(frozen=True)
class Unresolved:
    """Every candidate was exhausted (or resolution stopped early)."""

    entity_kind: EntityKind
    attempts: tuple[ProbeAttempt, ...] = ()
    reason: str = "all candidates exhausted"

    @property
    def last_error(self) -> str | None:
        return self.attempts[-1].message if self.attempts else None

    @property
    def diagnostic(self) -> str:
        """Operator-facing summary naming the attempted candidates."""
        if not self.attempts:
            return f"{self.entity_kind.value}: {self.reason}; nothing was probed"
        tried = "; ".join(
            f"{a.candidate.describe()} -> {a.failure.value}" for a in self.attempts
        )
        return f"{self.entity_kind.value}: {self.reason}. Tried {tried}"

    def raise_error(self) -> None:
        raise UnresolvedBindingError(self.entity_kind.value, self.diagnostic)

    def __bool__(self) -> bool:
        return False


Validator = Callable[[Candidate], Awaitable[None]]


def enumerate_candidates(spec: CandidateSpec) -> list[Candidate]:
    """All candidates of *spec* in probing order (tables outer, columns inner)."""
    return [
        Candidate(table=table, columns=MappingProxyType(combo))
        for table in spec.tables
        for combo in spec.column_combinations()
    ]


async def first_success(
    pairs: Iterable[tuple[Candidate, Validator]],
    *,
    strict_permissions: bool = False,
) -> tuple[Candidate | None, list[ProbeAttempt], str]:
    """Reduce ``(candidate, validator)`` pairs to the first that validates.

    Returns ``(winner, failed_attempts, reason)``; *winner* is ``None`` when
    nothing validated.
    """
    attempts: list[ProbeAttempt] = []
    missing_tables: set[str] = set()

    for candidate, validate in pairs:
        if candidate.table in missing_tables:
            continue
        try:
            await validate(candidate)
        except EntityMissing as e:
            attempts.append(ProbeAttempt(candidate, FailureKind.ENTITY_MISSING, e.message))
            missing_tables.add(candidate.table)
            logger.debug("Table %s not found: %s", candidate.table, e.message)
        except ShapeMismatch as e:
            attempts.append(ProbeAttempt(candidate, FailureKind.SHAPE_MISMATCH, e.message))
            logger.debug("Shape mismatch for %s: %s", candidate.describe(), e.message)
        except ProbeError as e:
            attempts.append(
                ProbeAttempt(candidate, FailureKind.TRANSIENT_OR_PERMISSION, e.message)
            )
            logger.warning(
                "Probe of %s failed for a non-schema reason: %s", candidate.describe(), e.message
            )
            if strict_permissions:
                return None, attempts, "stopped on permission or transient error"
        else:
            return candidate, attempts, ""

    return None, attempts, "all candidates exhausted"


def scope_filter(column: str, context: Any) -> Filter:
    """Filter scoping a probe or fetch to *context* (one id or many)."""
    if isinstance(context, (set, frozenset)):
        return In(column, sorted(context, key=str))
    if isinstance(context, (list, tuple)):
        return In(column, context)
    return Eq(column, context)


class BindingResolver:
    """Resolves logical entities to concrete bindings against a backend.

    Args:
        backend: Any AsyncBackend implementation.
        registry: Candidate specs per entity kind.
        config: Resolver configuration.
    """

    def __init__(
        self,
        backend: AsyncBackend,
        registry: CandidateRegistry | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self._backend = backend
        self._registry = registry or CandidateRegistry.default()
        self._config = config or ResolverConfig()

    @property
    def registry(self) -> CandidateRegistry:
        return self._registry

    def _validator(self, spec: CandidateSpec, context: Any) -> Validator:
        async def probe(candidate: Candidate) -> None:
            scope_column = candidate.columns[spec.scope_role]
            columns: Sequence[str] = [c for c in candidate.columns.values() if c is not None]
            try:
                await self._backend.select(
                    candidate.table,
                    columns=columns,
                    filters=[scope_filter(scope_column, context)],
                    limit=1,
                )
            except Exception as e:
                raise classify_error(e, candidate.table, scope_column) from e

        return probe

    async def resolve(
        self,
        entity_kind: EntityKind,
        context: Any,
    ) -> ResolvedBinding | Unresolved:
        """Find the first working binding for *entity_kind* scoped to *context*.

        *context* is a single id (e.g. a store id) or a sequence of ids
        (e.g. fetched order ids), matched through the spec's scope role.
        """
        spec = self._registry.get(entity_kind)
        validate = self._validator(spec, context)
        winner, attempts, reason = await first_success(
            ((candidate, validate) for candidate in enumerate_candidates(spec)),
            strict_permissions=self._config.strict_permissions,
        )

        if winner is None:
            unresolved = Unresolved(entity_kind, tuple(attempts), reason)
            logger.warning("Unresolved binding: %s", unresolved.diagnostic)
            return unresolved

        binding = ResolvedBinding(
            entity_kind=entity_kind,
            table=winner.table,
            columns_by_role=winner.columns,
        )
        logger.info(
            "Resolved %s to %s after %d failed probe(s)",
            entity_kind.value,
            winner.describe(),
            len(attempts),
        )
        return binding

