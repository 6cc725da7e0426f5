"""PostgreSQL backend using psycopg (v3+) async support."""

from __future__ import annotations

from typing import Any

from order_resolver.adapters.base import SqlBackend, _rows_to_dicts
from order_resolver.core.connection import BackendConfig


def _build_conninfo(config: BackendConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


class PostgresqlBackend(SqlBackend):
    """Asynchronous PostgreSQL backend.

    The connection runs in autocommit mode so a failed probe does not leave
    the session in an aborted transaction.
    """

    paramstyle = "pyformat"

    def __init__(self, connection: Any) -> None:
        self._connection = connection

    @classmethod
    async def connect(cls, config: BackendConfig) -> PostgresqlBackend:
        import psycopg
        import psycopg.rows

        conn = await psycopg.AsyncConnection.connect(
            _build_conninfo(config),
            row_factory=psycopg.rows.dict_row,
            autocommit=True,
        )
        return cls(conn)

    async def _execute(
        self,
        sql: str,
        params: dict[str, Any],
        *,
        fetch: bool,
    ) -> tuple[list[dict[str, Any]], int]:
        cursor = await self._connection.execute(sql, params)
        if fetch:
            rows = await cursor.fetchall()
            return _rows_to_dicts(cursor.description, rows), len(rows)
        return [], int(cursor.rowcount)

    async def close(self) -> None:
        await self._connection.close()
