"""Clause accumulator state.

QueryState is immutable: every builder call produces a new value through
``dataclasses.replace``, so a rendered statement can never observe a
half-applied clause. The value-construction helpers here perform the shape
checks builder calls must fail fast on.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from pool_query.core.enums import Direction, JoinKind, Operator, PoolKind
from pool_query.core.exceptions import InvalidArgumentError
from pool_query.core.params import count_placeholders

# Accepted operator spellings → Operator
_OPERATOR_ALIASES: dict[str, Operator] = {
    "=": Operator.EQ,
    "==": Operator.EQ,
    "!=": Operator.NEQ,
    "<>": Operator.NEQ,
    "LIKE": Operator.LIKE,
    "IN": Operator.IN,
    ">": Operator.GT,
    "<": Operator.LT,
    ">=": Operator.GTE,
    "<=": Operator.LTE,
}


@dataclass(frozen=True)
class JoinSpec:
    kind: JoinKind
    table: str
    left_column: str
    right_column: str
    operator: Operator = Operator.EQ


@dataclass(frozen=True)
class Predicate:
    """A single WHERE condition.

    For ``Operator.RAW`` the ``column`` holds a SQL fragment and ``value``
    the tuple of params bound to its ``?`` placeholders.
    """

    column: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class Increment:
    """A pending ``column = column + delta`` assignment."""

    column: str
    delta: int | float | Decimal


@dataclass(frozen=True)
class QueryState:
    table: str = ""
    pool_hint: PoolKind | None = None
    columns: tuple[str, ...] = ()
    joins: tuple[JoinSpec, ...] = ()
    predicates: tuple[Predicate, ...] = ()
    order_by: tuple[str, Direction] | None = None
    limit: int | None = None
    offset: int | None = None
    want_total: bool = False
    increments: tuple[Increment, ...] = ()

    def with_columns(self, columns: tuple[str, ...]) -> QueryState:
        return replace(self, columns=self.columns + columns)

    def with_join(self, join: JoinSpec) -> QueryState:
        return replace(self, joins=self.joins + (join,))

    def with_predicate(self, predicate: Predicate) -> QueryState:
        return replace(self, predicates=self.predicates + (predicate,))

    def with_increment(self, increment: Increment) -> QueryState:
        return replace(self, increments=self.increments + (increment,))


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def parse_pool_kind(target: PoolKind | str | None) -> PoolKind | None:
    """Coerce a ``"read"``/``"write"`` hint to PoolKind."""
    if target is None or isinstance(target, PoolKind):
        return target
    if isinstance(target, str):
        try:
            return PoolKind(target.lower())
        except ValueError:
            pass
    raise InvalidArgumentError(f"Unknown pool target {target!r}; expected 'read' or 'write'")


def parse_operator(operator: Operator | str) -> Operator:
    if isinstance(operator, Operator):
        return operator
    if isinstance(operator, str):
        found = _OPERATOR_ALIASES.get(operator.strip().upper())
        if found is not None:
            return found
    raise InvalidArgumentError(
        f"Unsupported operator {operator!r}; allowed: {sorted(_OPERATOR_ALIASES)}"
    )


def make_predicate(column: str, operator: Operator | str, value: Any) -> Predicate:
    """Build a validated predicate, applying LIKE wrapping and IN checks."""
    _require_name(column, "column")
    op = parse_operator(operator)

    if op is Operator.RAW:
        raise InvalidArgumentError("Raw predicates are built with where_raw()")

    if op is Operator.IN:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(
            value, (list, tuple, set, frozenset)
        ):
            raise InvalidArgumentError(
                f"IN value for '{column}' must be a list, tuple or set, got {type(value).__name__}"
            )
        if not value:
            raise InvalidArgumentError(f"IN value for '{column}' must not be empty")
        value = tuple(value)
    elif op is Operator.LIKE:
        if value is None:
            raise InvalidArgumentError(f"LIKE value for '{column}' must not be None")
        value = f"%{value}%"
    elif value is None and op not in (Operator.EQ, Operator.NEQ):
        raise InvalidArgumentError(f"Operator {op.value} cannot compare '{column}' with NULL")

    return Predicate(column=column, operator=op, value=value)


def make_raw_predicate(fragment: str, params: tuple[Any, ...]) -> Predicate:
    _require_name(fragment, "fragment")
    expected = count_placeholders(fragment)
    if expected != len(params):
        raise InvalidArgumentError(
            f"Raw predicate has {expected} placeholder(s) but {len(params)} param(s)"
        )
    return Predicate(column=fragment, operator=Operator.RAW, value=params)


def make_join(
    kind: JoinKind,
    table: str,
    left_column: str,
    op_or_right_column: Operator | str,
    right_column: str | None,
) -> JoinSpec:
    _require_name(table, "join table")
    _require_name(left_column, "join column")
    if right_column is None:
        operator = Operator.EQ
        right_column = str(op_or_right_column)
    else:
        operator = parse_operator(op_or_right_column)
        if operator in (Operator.IN, Operator.RAW):
            raise InvalidArgumentError(f"Operator {operator.value} is not valid in a JOIN")
    _require_name(right_column, "join column")
    return JoinSpec(
        kind=kind,
        table=table,
        left_column=left_column,
        right_column=right_column,
        operator=operator,
    )


def make_increment(column: str, delta: Any) -> Increment:
    _require_name(column, "column")
    if isinstance(delta, bool) or not isinstance(delta, (int, float, Decimal)):
        raise InvalidArgumentError(
            f"Increment delta for '{column}' must be a number, got {type(delta).__name__}"
        )
    return Increment(column=column, delta=delta)


def parse_direction(direction: Direction | str) -> Direction:
    if isinstance(direction, Direction):
        return direction
    if isinstance(direction, str):
        try:
            return Direction(direction.strip().upper())
        except ValueError:
            pass
    raise InvalidArgumentError(f"Order direction must be 'ASC' or 'DESC', got {direction!r}")


def check_count(value: Any, name: str) -> int:
    """Validate a LIMIT/OFFSET value."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _require_name(value: Any, what: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{what} must be a non-empty string, got {value!r}")
