"""SQL renderer.

Pure functions turning a QueryState into a RenderedStatement. Values are
always bound through ``?`` placeholders, except for the zero-argument MySQL
function literals in FUNCTION_LITERALS, which are emitted verbatim.
Params are collected in the same left-to-right order as their placeholders.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pool_query.core.enums import Operator
from pool_query.core.exceptions import InvalidArgumentError
from pool_query.core.state import JoinSpec, Predicate, QueryState

FUNCTION_LITERALS: frozenset[str] = frozenset(
    {
        "NOW()",
        "CURRENT_TIMESTAMP",
        "UUID()",
        "RAND()",
        "CURDATE()",
        "CURTIME()",
        "UNIX_TIMESTAMP()",
        "UTC_TIMESTAMP()",
        "SYSDATE()",
        "LOCALTIME()",
        "LOCALTIMESTAMP()",
        "PI()",
        "DATABASE()",
        "USER()",
        "VERSION()",
    }
)

TOTAL_COLUMN = "COUNT(*) OVER() AS total"


@dataclass(frozen=True)
class RenderedStatement:
    """SQL text plus the params bound to its placeholders, in order."""

    sql: str
    params: tuple[Any, ...] = ()


def is_function_literal(value: Any) -> bool:
    return isinstance(value, str) and value in FUNCTION_LITERALS


class _Params:
    """Collects bound values while SQL fragments are produced."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def bind(self, value: Any) -> str:
        """Return the SQL for *value*: a placeholder or an inlined literal."""
        if is_function_literal(value):
            return value
        self.values.append(value)
        return "?"

    def extend(self, values: tuple[Any, ...]) -> None:
        self.values.extend(values)


# ---------------------------------------------------------------------------
# Clause rendering
# ---------------------------------------------------------------------------


def _render_join(join: JoinSpec) -> str:
    return (
        f"{join.kind.value} JOIN {join.table} "
        f"ON {join.left_column} {join.operator.value} {join.right_column}"
    )


def _render_predicate(predicate: Predicate, params: _Params) -> str:
    op = predicate.operator
    column = predicate.column

    if op is Operator.RAW:
        params.extend(predicate.value)
        return f"({column})"

    if op is Operator.IN:
        placeholders = ",".join(params.bind(item) for item in predicate.value)
        return f"{column} IN ({placeholders})"

    if predicate.value is None:
        # Only EQ/NEQ accept None at construction time
        return f"{column} IS NULL" if op is Operator.EQ else f"{column} IS NOT NULL"

    return f"{column} {op.value} {params.bind(predicate.value)}"


def _render_where(state: QueryState, params: _Params) -> str | None:
    if not state.predicates:
        return None
    conditions = [_render_predicate(p, params) for p in state.predicates]
    return "WHERE " + " AND ".join(conditions)


def _render_assignments(data: Mapping[str, Any], params: _Params) -> list[str]:
    return [f"{column} = {params.bind(value)}" for column, value in data.items()]


def _render_increments(state: QueryState, params: _Params) -> list[str]:
    return [
        f"{inc.column} = {inc.column} + {params.bind(inc.delta)}" for inc in state.increments
    ]


def _render_insert_head(table: str, data: Mapping[str, Any], params: _Params) -> str:
    if not isinstance(data, Mapping):
        raise InvalidArgumentError(
            f"insert data must be a mapping, got {type(data).__name__}"
        )
    if not data:
        raise InvalidArgumentError(f"Nothing to insert into '{table}': data is empty")
    columns = ", ".join(data.keys())
    values = ", ".join(params.bind(value) for value in data.values())
    return f"INSERT INTO {table} ({columns}) VALUES ({values})"


def _require_table(state: QueryState) -> None:
    if not state.table:
        raise InvalidArgumentError("No table selected; call table() first")


# ---------------------------------------------------------------------------
# Statement rendering
# ---------------------------------------------------------------------------


def render_select(state: QueryState) -> RenderedStatement:
    """Render a SELECT for the accumulated state."""
    _require_table(state)
    params = _Params()

    select_list = list(state.columns) or ["*"]
    if state.want_total:
        select_list.append(TOTAL_COLUMN)

    parts = [f"SELECT {', '.join(select_list)} FROM {state.table}"]
    parts.extend(_render_join(join) for join in state.joins)

    where_sql = _render_where(state, params)
    if where_sql:
        parts.append(where_sql)

    if state.order_by is not None:
        column, direction = state.order_by
        parts.append(f"ORDER BY {column} {direction.value}")
    if state.limit is not None:
        parts.append(f"LIMIT {state.limit}")
    if state.offset is not None:
        parts.append(f"OFFSET {state.offset}")

    return RenderedStatement(sql=" ".join(parts), params=tuple(params.values))


def render_insert(state: QueryState, data: Mapping[str, Any]) -> RenderedStatement:
    _require_table(state)
    params = _Params()
    sql = _render_insert_head(state.table, data, params)
    return RenderedStatement(sql=sql, params=tuple(params.values))


def render_update(state: QueryState, data: Mapping[str, Any] | None = None) -> RenderedStatement:
    """Render an UPDATE merging literal assignments with pending increments.

    SET params precede WHERE params. An UPDATE with nothing to set is
    rejected before it reaches the database.
    """
    _require_table(state)
    data = data or {}
    if not data and not state.increments:
        raise InvalidArgumentError(
            f"Nothing to update in '{state.table}': no data and no increase() calls"
        )

    params = _Params()
    assignments = _render_assignments(data, params) + _render_increments(state, params)
    parts = [f"UPDATE {state.table} SET {', '.join(assignments)}"]

    where_sql = _render_where(state, params)
    if where_sql:
        parts.append(where_sql)

    return RenderedStatement(sql=" ".join(parts), params=tuple(params.values))


def render_upsert(
    state: QueryState,
    data: Mapping[str, Any],
    update_data: Mapping[str, Any] | str | None = None,
) -> RenderedStatement:
    """Render ``INSERT ... ON DUPLICATE KEY UPDATE``.

    ``update_data`` selects the duplicate-key clause:

    * ``None``: every inserted column takes its new value (``col = VALUES(col)``).
    * a mapping: only those columns, bound like UPDATE assignments.
    * a string: appended verbatim.

    Pending increments are added to the duplicate-key clause.
    """
    _require_table(state)
    params = _Params()
    head = _render_insert_head(state.table, data, params)

    if isinstance(update_data, str):
        if not update_data.strip():
            raise InvalidArgumentError("Raw ON DUPLICATE KEY UPDATE clause must not be empty")
        if state.increments:
            raise InvalidArgumentError("increase() cannot be combined with a raw upsert clause")
        clause = update_data
    else:
        if update_data is None:
            assignments = [f"{column} = VALUES({column})" for column in data]
        elif isinstance(update_data, Mapping):
            assignments = _render_assignments(update_data, params)
        else:
            raise InvalidArgumentError(
                f"update_data must be a mapping or a string, got {type(update_data).__name__}"
            )
        assignments += _render_increments(state, params)
        if not assignments:
            raise InvalidArgumentError("ON DUPLICATE KEY UPDATE clause would be empty")
        clause = ", ".join(assignments)

    sql = f"{head} ON DUPLICATE KEY UPDATE {clause}"
    return RenderedStatement(sql=sql, params=tuple(params.values))


def render_delete(state: QueryState) -> RenderedStatement:
    """Render a DELETE. Deletes without a WHERE clause are rejected."""
    _require_table(state)
    params = _Params()
    where_sql = _render_where(state, params)
    if where_sql is None:
        raise InvalidArgumentError(
            f"Refusing to delete from '{state.table}' without a where() condition"
        )
    return RenderedStatement(
        sql=f"DELETE FROM {state.table} {where_sql}", params=tuple(params.values)
    )
