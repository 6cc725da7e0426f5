"""Shared SQL backend implementation.

Concrete SQL backends supply a paramstyle and an ``_execute`` coroutine;
statement building and row conversion live here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from order_resolver.core.query import (
    Filter,
    In,
    build_select,
    build_update,
    normalize_params,
)


def _rows_to_dicts(description: Any, rows: Sequence[Any]) -> list[dict[str, Any]]:
    """Convert fetched rows to dicts.

    Handles both tuple-like rows and dict-like rows from different drivers.
    """
    if description is None or not rows:
        return []
    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class SqlBackend:
    """Base class for SQL backends implementing AsyncBackend."""

    paramstyle = "named"
    identifier_quote = '"'

    async def _execute(
        self,
        sql: str,
        params: dict[str, Any],
        *,
        fetch: bool,
    ) -> tuple[list[dict[str, Any]], int]:
        """Run *sql*. Returns ``(rows, rowcount)``; rows empty unless *fetch*."""
        raise NotImplementedError

    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        sql, params = build_select(
            table, columns, filters, order_by, descending, limit, quote=self.identifier_quote
        )
        rows, _ = await self._execute(normalize_params(sql, self.paramstyle), params, fetch=True)
        return rows

    async def select_by_ids(
        self,
        table: str,
        id_column: str,
        ids: Sequence[Any],
        columns: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        if not ids:
            return []
        return await self.select(table, columns=columns, filters=[In(id_column, ids)])

    async def update(
        self,
        table: str,
        patch: dict[str, Any],
        filters: Sequence[Filter],
    ) -> int:
        sql, params = build_update(table, patch, filters, quote=self.identifier_quote)
        _, rowcount = await self._execute(
            normalize_params(sql, self.paramstyle), params, fetch=False
        )
        return rowcount

    async def close(self) -> None:
        raise NotImplementedError
