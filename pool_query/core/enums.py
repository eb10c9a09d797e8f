"""Closed enumerations shared by the builder, renderer and router."""

from __future__ import annotations

from enum import Enum


class PoolKind(Enum):
    """The two pools a Database can hold."""

    READ = "read"
    WRITE = "write"


class Operation(Enum):
    """Terminal operations, used to pick a pool."""

    GET = "get"
    FIRST = "first"
    READ = "read"
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"
    WRITE = "write"

    @property
    def is_write(self) -> bool:
        return self not in _READ_OPERATIONS


_READ_OPERATIONS = frozenset({Operation.GET, Operation.FIRST, Operation.READ})


class Operator(Enum):
    """Predicate and join comparison operators."""

    EQ = "="
    NEQ = "!="
    LIKE = "LIKE"
    IN = "IN"
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    RAW = "RAW"


class JoinKind(Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class Direction(Enum):
    ASC = "ASC"
    DESC = "DESC"


class LifecycleState(Enum):
    """PoolManager states. CLOSED is terminal."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"
