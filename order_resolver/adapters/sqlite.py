"""SQLite backend using aiosqlite."""

from __future__ import annotations

from typing import Any

import aiosqlite

from order_resolver.adapters.base import SqlBackend, _rows_to_dicts
from order_resolver.core.connection import BackendConfig


class SqliteBackend(SqlBackend):
    """Asynchronous SQLite backend.

    Identifiers are backtick-quoted: SQLite reads an unknown double-quoted
    identifier as a string literal, which would let a probe of a missing
    column succeed.

    SQLite reports ``no such table: x`` and ``no such column: y``, both of
    which the probe classifier recognises.
    """

    paramstyle = "named"
    identifier_quote = "`"

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._connection = connection

    @classmethod
    async def connect(cls, config: BackendConfig) -> SqliteBackend:
        conn = await aiosqlite.connect(config.database)
        if config.database != ":memory:":
            await conn.execute("PRAGMA journal_mode=WAL")
        return cls(conn)

    @property
    def connection(self) -> aiosqlite.Connection:
        return self._connection

    async def _execute(
        self,
        sql: str,
        params: dict[str, Any],
        *,
        fetch: bool,
    ) -> tuple[list[dict[str, Any]], int]:
        async with self._connection.execute(sql, params) as cursor:
            if fetch:
                rows = await cursor.fetchall()
                return _rows_to_dicts(cursor.description, list(rows)), len(rows)
            rowcount = cursor.rowcount
        await self._connection.commit()
        return [], int(rowcount)

    async def close(self) -> None:
        await self._connection.close()
