"""In-memory backend.

Tables are declared with an explicit column set so that probes against
unknown tables or columns fail with the same wording a PostgREST backend
uses. Useful for demos and for exercising the resolver without a database.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Sequence
from typing import Any

from order_resolver.core.connection import BackendConfig
from order_resolver.core.exceptions import BackendError
from order_resolver.core.query import Eq, Filter, In


class MemoryBackendError(BackendError):
    """Error raised by the in-memory backend, carrying a backend-style message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class _Table:
    def __init__(self, columns: Iterable[str], rows: Iterable[dict[str, Any]]) -> None:
        self.columns = set(columns)
        self.rows: list[dict[str, Any]] = []
        for row in rows:
            self.insert(row)

    def insert(self, row: dict[str, Any]) -> None:
        unknown = set(row) - self.columns
        if unknown:
            raise ValueError(f"Row has undeclared columns: {sorted(unknown)}")
        self.rows.append({col: row.get(col) for col in self.columns})


def _matches(row: dict[str, Any], filters: Sequence[Filter]) -> bool:
    for f in filters:
        value = row.get(f.column)
        if isinstance(f, Eq):
            if value != f.value:
                return False
        elif isinstance(f, In):
            if value not in f.values:
                return False
    return True


class MemoryBackend:
    """Dict-backed implementation of the AsyncBackend protocol."""

    def __init__(self) -> None:
        self._tables: dict[str, _Table] = {}
        self._denied: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []

    @classmethod
    async def connect(cls, config: BackendConfig) -> MemoryBackend:
        """Build a backend from ``config.extra["tables"]``.

        Expected shape: ``{name: {"columns": [...], "rows": [...]}}``.
        """
        backend = cls()
        for name, definition in config.extra.get("tables", {}).items():
            backend.add_table(name, definition["columns"], definition.get("rows", ()))
        return backend

    def add_table(
        self,
        name: str,
        columns: Iterable[str],
        rows: Iterable[dict[str, Any]] = (),
    ) -> None:
        self._tables[name] = _Table(columns, rows)

    def deny(self, table: str, message: str | None = None) -> None:
        """Make every access to *table* fail as a permission error."""
        self._denied[table] = message or f"permission denied for table {table}"

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Copy of a table's rows (for inspection)."""
        return copy.deepcopy(self._table(table).rows)

    def _table(self, name: str) -> _Table:
        if name in self._denied:
            raise MemoryBackendError(self._denied[name])
        try:
            return self._tables[name]
        except KeyError:
            raise MemoryBackendError(
                f"Could not find the table 'public.{name}' in the schema cache"
            ) from None

    def _check_columns(self, name: str, table: _Table, columns: Iterable[str | None]) -> None:
        for column in columns:
            if column is not None and column not in table.columns:
                raise MemoryBackendError(f"column {name}.{column} does not exist")

    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self.calls.append(("select", table))
        tbl = self._table(table)
        self._check_columns(table, tbl, [*(columns or ()), *(f.column for f in filters), order_by])

        rows = [row for row in tbl.rows if _matches(row, filters)]
        if order_by is not None:
            present = [r for r in rows if r.get(order_by) is not None]
            absent = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + absent
        if limit is not None:
            rows = rows[:limit]
        if columns:
            return [{col: row.get(col) for col in columns} for row in rows]
        return copy.deepcopy(rows)

    async def select_by_ids(
        self,
        table: str,
        id_column: str,
        ids: Sequence[Any],
        columns: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        return await self.select(table, columns=columns, filters=[In(id_column, ids)])

    async def update(
        self,
        table: str,
        patch: dict[str, Any],
        filters: Sequence[Filter],
    ) -> int:
        self.calls.append(("update", table))
        tbl = self._table(table)
        self._check_columns(table, tbl, [*patch, *(f.column for f in filters)])

        affected = 0
        for row in tbl.rows:
            if _matches(row, filters):
                row.update(patch)
                affected += 1
        return affected

    async def close(self) -> None:
        self._tables.clear()
