"""Fluent query builder.

QueryBuilder accumulates clauses into an immutable QueryState and runs one
terminal operation (get, first, insert, update, upsert, delete) through its
Database. Every clause method returns the same handle.

A handle belongs to one chain at a time. Database.table() returns a fresh
handle for every chain; sharing one handle between concurrently running
chains interleaves their clauses and is not guarded against.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from pool_query.core.enums import Direction, JoinKind, Operation, Operator, PoolKind
from pool_query.core.exceptions import InvalidArgumentError
from pool_query.core.renderer import (
    RenderedStatement,
    render_delete,
    render_insert,
    render_select,
    render_update,
    render_upsert,
)
from pool_query.core.state import (
    QueryState,
    check_count,
    make_increment,
    make_join,
    make_predicate,
    make_raw_predicate,
    parse_direction,
    parse_pool_kind,
)

if TYPE_CHECKING:
    from pool_query.adapters.protocol import ExecutionResult, ResultHeader
    from pool_query.core.database import Database

# Distinguishes "argument not given" from an explicit None
_MISSING: Any = object()


class QueryBuilder:
    """Single-owner fluent handle over a QueryState."""

    def __init__(self, database: Database) -> None:
        self._database = database
        self._state = QueryState()

    @property
    def state(self) -> QueryState:
        """The clauses accumulated so far."""
        return self._state

    # --- Clauses ---

    def table(self, name: str, target: PoolKind | str | None = None) -> QueryBuilder:
        """Start a new chain on *name*, discarding any unconsumed clauses.

        Args:
            name: Table name (may include an alias, e.g. ``"users u"``).
            target: Optional pool hint, ``"read"`` or ``"write"``.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError(f"table name must be a non-empty string, got {name!r}")
        self._state = QueryState(table=name, pool_hint=parse_pool_kind(target))
        return self

    def select(self, *columns: str | list[str] | tuple[str, ...]) -> QueryBuilder:
        """Add columns to the select list. Repeated calls accumulate."""
        if len(columns) == 1 and isinstance(columns[0], (list, tuple)):
            columns = tuple(columns[0])
        for column in columns:
            if not isinstance(column, str) or not column.strip():
                raise InvalidArgumentError(f"column must be a non-empty string, got {column!r}")
        self._state = self._state.with_columns(tuple(columns))  # type: ignore[arg-type]
        return self

    def where(self, column: str, op_or_value: Any, value: Any = _MISSING) -> QueryBuilder:
        """Add an AND-ed condition.

        ``where("id", 5)`` is the same as ``where("id", "=", 5)``. LIKE values
        are wrapped in ``%`` wildcards; IN needs a non-empty list, tuple or set.
        """
        if value is _MISSING:
            predicate = make_predicate(column, Operator.EQ, op_or_value)
        else:
            predicate = make_predicate(column, op_or_value, value)
        self._state = self._state.with_predicate(predicate)
        return self

    def where_raw(self, fragment: str, *params: Any) -> QueryBuilder:
        """Add a SQL fragment condition whose values are bound via ``?``."""
        self._state = self._state.with_predicate(make_raw_predicate(fragment, params))
        return self

    def inner_join(
        self, table: str, left_column: str, op_or_right: str, right_column: str | None = None
    ) -> QueryBuilder:
        return self._join(JoinKind.INNER, table, left_column, op_or_right, right_column)

    def left_join(
        self, table: str, left_column: str, op_or_right: str, right_column: str | None = None
    ) -> QueryBuilder:
        return self._join(JoinKind.LEFT, table, left_column, op_or_right, right_column)

    def right_join(
        self, table: str, left_column: str, op_or_right: str, right_column: str | None = None
    ) -> QueryBuilder:
        return self._join(JoinKind.RIGHT, table, left_column, op_or_right, right_column)

    def _join(
        self,
        kind: JoinKind,
        table: str,
        left_column: str,
        op_or_right: str,
        right_column: str | None,
    ) -> QueryBuilder:
        join = make_join(kind, table, left_column, op_or_right, right_column)
        self._state = self._state.with_join(join)
        return self

    def order_by(self, column: str, direction: Direction | str = Direction.ASC) -> QueryBuilder:
        if not isinstance(column, str) or not column.strip():
            raise InvalidArgumentError(f"order column must be a non-empty string, got {column!r}")
        self._state = replace(self._state, order_by=(column, parse_direction(direction)))
        return self

    def limit(self, count: int) -> QueryBuilder:
        self._state = replace(self._state, limit=check_count(count, "limit"))
        return self

    def offset(self, count: int) -> QueryBuilder:
        self._state = replace(self._state, offset=check_count(count, "offset"))
        return self

    def total(self) -> QueryBuilder:
        """Add ``COUNT(*) OVER() AS total`` so every row carries the unpaged count."""
        self._state = replace(self._state, want_total=True)
        return self

    def increase(self, column: str, delta: Any = 1) -> QueryBuilder:
        """Queue ``column = column + delta`` for the next update() or upsert()."""
        self._state = self._state.with_increment(make_increment(column, delta))
        return self

    def decrease(self, column: str, delta: Any = 1) -> QueryBuilder:
        increment = make_increment(column, delta)
        return self.increase(column, -increment.delta)

    # --- Terminal operations ---

    def _consume(self) -> QueryState:
        """Take the accumulated state and reset the handle for a new chain."""
        state, self._state = self._state, QueryState()
        return state

    async def _run(
        self, operation: Operation, state: QueryState, statement: RenderedStatement
    ) -> ExecutionResult:
        return await self._database.execute(operation, state.pool_hint, statement)

    async def get(self) -> list[dict[str, Any]]:
        """Run the SELECT and return every row as a dict."""
        state = self._consume()
        result = await self._run(Operation.GET, state, render_select(state))
        return result.rows or []

    async def first(self) -> dict[str, Any] | None:
        """Run the SELECT with ``LIMIT 1`` and return the row, or None."""
        state = replace(self._consume(), limit=1)
        result = await self._run(Operation.FIRST, state, render_select(state))
        return result.rows[0] if result.rows else None

    async def insert(self, data: Mapping[str, Any]) -> int | None:
        """Insert one row and return its generated id, or None."""
        state = self._consume()
        result = await self._run(Operation.INSERT, state, render_insert(state, data))
        return result.header.insert_id if result.header else None

    async def update(self, data: Mapping[str, Any] | None = None) -> ResultHeader:
        """Update matching rows with *data* plus any pending increase() calls."""
        state = self._consume()
        result = await self._run(Operation.UPDATE, state, render_update(state, data))
        return self._database.header_of(result)

    async def upsert(
        self,
        data: Mapping[str, Any],
        update_data: Mapping[str, Any] | str | None = None,
    ) -> int | None:
        """Insert, or update on duplicate key. Returns the generated id, or None."""
        state = self._consume()
        statement = render_upsert(state, data, update_data)
        result = await self._run(Operation.UPSERT, state, statement)
        return result.header.insert_id if result.header else None

    async def delete(self) -> ResultHeader:
        """Delete matching rows. A where() condition is required."""
        state = self._consume()
        result = await self._run(Operation.DELETE, state, render_delete(state))
        return self._database.header_of(result)
