"""Mutation router - status updates through the resolved orders binding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from order_resolver.core.classify import error_message
from order_resolver.core.exceptions import MutationFailure
from order_resolver.core.query import Eq
from order_resolver.core.resolver import ResolvedBinding, Unresolved
from order_resolver.repository.base import AsyncRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one status change."""

    ok: bool
    order_id: Any
    status: str
    matched_column: str | None = None
    failure: MutationFailure | None = None

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure


class MutationRouter(AsyncRepository):
    """Applies status changes to the binding's table only.

    The primary id column is tried first; on an error or zero affected rows
    the secondary (human/external order number) column is tried once.
    """

    async def set_status(
        self,
        binding: ResolvedBinding | Unresolved | None,
        order_id: Any,
        new_status: str,
    ) -> MutationResult:
        if not binding:
            return self._failed(order_id, new_status, "Orders table not detected yet")
        if order_id is None or order_id == "":
            return self._failed(order_id, new_status, "No order id given")

        patch = {self.config.status_column: new_status}
        columns = [self.config.primary_id_column, self.config.secondary_id_column]
        last_error = ""

        for attempt, column in enumerate(dict.fromkeys(columns)):
            if attempt:
                logger.info(
                    "Retrying status update of %r on %s.%s", order_id, binding.table, column
                )
            try:
                affected = await self.backend.update(
                    binding.table, patch, [Eq(column, order_id)]
                )
            except Exception as e:
                last_error = error_message(e)
                logger.debug("Update by %s.%s failed: %s", binding.table, column, last_error)
                continue
            if affected > 0:
                return MutationResult(
                    ok=True, order_id=order_id, status=new_status, matched_column=column
                )
            last_error = f"no rows in {binding.table} matched {column} = {order_id!r}"

        return self._failed(order_id, new_status, last_error)

    def _failed(self, order_id: Any, status: str, detail: str) -> MutationResult:
        logger.warning("Status update of %r to %r failed: %s", order_id, status, detail)
        return MutationResult(
            ok=False,
            order_id=order_id,
            status=status,
            failure=MutationFailure(order_id, detail),
        )
