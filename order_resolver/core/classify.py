"""Backend error classification by message inspection.

Backends do not expose typed "missing table" / "missing column" errors, so
the message text is the contract. Patterns cover PostgREST, PostgreSQL and
SQLite wording.
"""

from __future__ import annotations

from order_resolver.core.enums import FailureKind
from order_resolver.core.exceptions import (
    EntityMissing,
    ProbeError,
    ShapeMismatch,
    TransientOrPermission,
)

_MISSING_COLUMN_MARKERS = ("does not exist", "no such column", "could not find")

_MISSING_TABLE_MARKERS = (
    "could not find the table",
    "schema cache",
    "no such table",
    "does not exist",
)

_PROBE_ERRORS: dict[FailureKind, type[ProbeError]] = {
    FailureKind.ENTITY_MISSING: EntityMissing,
    FailureKind.SHAPE_MISMATCH: ShapeMismatch,
    FailureKind.TRANSIENT_OR_PERMISSION: TransientOrPermission,
}


def error_message(error: BaseException | str | None) -> str:
    """Best-effort text of a backend error."""
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or type(error).__name__


def classify_message(message: str) -> FailureKind:
    """Classify a backend error message.

    Column checks run first: "column x does not exist" would otherwise
    match the generic table marker.
    """
    m = message.lower()
    if "column" in m and any(marker in m for marker in _MISSING_COLUMN_MARKERS):
        return FailureKind.SHAPE_MISMATCH
    if any(marker in m for marker in _MISSING_TABLE_MARKERS):
        return FailureKind.ENTITY_MISSING
    return FailureKind.TRANSIENT_OR_PERMISSION


def classify_error(
    error: BaseException | str,
    table: str,
    column: str | None = None,
) -> ProbeError:
    """Wrap a raw backend error into the matching ProbeError subclass."""
    message = error_message(error)
    kind = classify_message(message)
    return _PROBE_ERRORS[kind](table, message, column=column)
