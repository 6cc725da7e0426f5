"""Backend query surface protocol.

Every backend module MUST implement this protocol. Errors are raised as
exceptions whose text carries the backend's own message: the resolver
classifies missing tables and columns by that text.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from order_resolver.core.query import Filter


@runtime_checkable
class AsyncBackend(Protocol):
    """Asynchronous backend protocol."""

    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Filtered read. ``columns=None`` selects every column."""
        ...

    async def select_by_ids(
        self,
        table: str,
        id_column: str,
        ids: Sequence[Any],
        columns: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Batched lookup by id. Missing ids are omitted, not errors."""
        ...

    async def update(
        self,
        table: str,
        patch: dict[str, Any],
        filters: Sequence[Filter],
    ) -> int:
        """Apply *patch* to matching rows. Returns the affected row count."""
        ...

    async def close(self) -> None:
        """Release the underlying connection."""
        ...
