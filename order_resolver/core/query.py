"""Filter types and SQL statement building.

Statements are built with ``:name`` parameters and converted to the
driver's paramstyle. Table and column names are validated as plain
identifiers and quoted with the backend's identifier quote; values are
always bound, never inlined.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from order_resolver.core.exceptions import InvalidIdentifierError

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Matches :name but not ::typecast and not inside words
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")


@dataclass(frozen=True)
class Eq:
    """``column = value``"""

    column: str
    value: Any


@dataclass(frozen=True)
class In:
    """``column IN (values...)``. An empty value list matches nothing."""

    column: str
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


Filter = Eq | In


def quote_identifier(name: str, quote: str = '"') -> str:
    """Validate and quote a table or column name."""
    if not isinstance(name, str) or not _IDENTIFIER_PATTERN.match(name):
        raise InvalidIdentifierError(str(name))
    return f"{quote}{name}{quote}"


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert :name parameters to the target param style.

    Args:
        sql: SQL string with :name parameters.
        paramstyle: Target style - 'named' (no conversion) or 'pyformat' (%(name)s).
    """
    if paramstyle == "named":
        return sql
    return _convert_to_pyformat(sql)


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert :name params to %(name)s, preserving string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:start]))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:]))

    return "".join(parts)


def _where_clause(filters: Sequence[Filter], params: dict[str, Any], quote: str) -> str:
    conditions: list[str] = []
    for f in filters:
        column = quote_identifier(f.column, quote)
        if isinstance(f, Eq):
            name = f"p{len(params)}"
            params[name] = f.value
            conditions.append(f"{column} = :{name}")
        elif not f.values:
            conditions.append("1 = 0")
        else:
            names = []
            for value in f.values:
                name = f"p{len(params)}"
                params[name] = value
                names.append(f":{name}")
            conditions.append(f"{column} IN ({', '.join(names)})")
    if not conditions:
        return ""
    return " WHERE " + " AND ".join(conditions)


def build_select(
    table: str,
    columns: Sequence[str] | None = None,
    filters: Sequence[Filter] = (),
    order_by: str | None = None,
    descending: bool = False,
    limit: int | None = None,
    quote: str = '"',
) -> tuple[str, dict[str, Any]]:
    """Build a filtered SELECT. Returns ``(sql, params)`` with :name params."""
    params: dict[str, Any] = {}
    select_list = ", ".join(quote_identifier(c, quote) for c in columns) if columns else "*"
    sql = f"SELECT {select_list} FROM {quote_identifier(table, quote)}"
    sql += _where_clause(filters, params, quote)
    if order_by is not None:
        sql += f" ORDER BY {quote_identifier(order_by, quote)} {'DESC' if descending else 'ASC'}"
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    return sql, params


def build_update(
    table: str,
    patch: dict[str, Any],
    filters: Sequence[Filter],
    quote: str = '"',
) -> tuple[str, dict[str, Any]]:
    """Build an UPDATE. At least one filter is required."""
    if not patch:
        raise ValueError("Update patch must not be empty")
    if not filters:
        raise ValueError("Refusing to build an unfiltered UPDATE")
    params: dict[str, Any] = {}
    assignments = []
    for column, value in patch.items():
        name = f"v{len(params)}"
        params[name] = value
        assignments.append(f"{quote_identifier(column, quote)} = :{name}")
    sql = f"UPDATE {quote_identifier(table, quote)} SET {', '.join(assignments)}"
    sql += _where_clause(filters, params, quote)
    return sql, params
