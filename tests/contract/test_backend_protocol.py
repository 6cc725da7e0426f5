"""Contract tests for AsyncBackend protocol compliance."""

from __future__ import annotations

import pytest

from order_resolver.adapters.memory import MemoryBackend
from order_resolver.adapters.postgresql import PostgresqlBackend
from order_resolver.adapters.protocol import AsyncBackend
from order_resolver.adapters.sqlite import SqliteBackend
from order_resolver.core.connection import BackendConfig, open_backend
from order_resolver.core.exceptions import AdapterError


class TestMemoryBackendProtocol:
    def test_implements_protocol(self) -> None:
        assert isinstance(MemoryBackend(), AsyncBackend)

    async def test_open_from_config(self) -> None:
        config = BackendConfig(
            driver="memory",
            extra={"tables": {"grocery_orders": {"columns": ["id", "store_id"]}}},
        )
        backend = await open_backend(config)
        assert isinstance(backend, MemoryBackend)
        assert await backend.select("grocery_orders") == []

    def test_undeclared_column_rejected(self) -> None:
        with pytest.raises(ValueError, match="undeclared"):
            MemoryBackend().add_table("t", ["id"], [{"id": 1, "extra": 2}])


class TestSqliteBackendProtocol:
    async def test_implements_protocol(self) -> None:
        backend = await open_backend(BackendConfig(driver="sqlite"))
        try:
            assert isinstance(backend, SqliteBackend)
            assert isinstance(backend, AsyncBackend)
            assert backend.paramstyle == "named"
        finally:
            await backend.close()


class TestPostgresqlBackendProtocol:
    def test_paramstyle(self) -> None:
        assert PostgresqlBackend.paramstyle == "pyformat"
        assert PostgresqlBackend.identifier_quote == '"'


class TestOpenBackend:
    async def test_unknown_driver(self) -> None:
        with pytest.raises(AdapterError, match="Unsupported"):
            await open_backend(BackendConfig(driver="oracle"))
