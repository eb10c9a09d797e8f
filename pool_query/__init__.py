"""PoolQuery - dual-pool SQL access layer with a fluent query builder."""

from __future__ import annotations

from pool_query.adapters.protocol import AsyncAdapter, ExecutionResult, ResultHeader
from pool_query.core.builder import QueryBuilder
from pool_query.core.config import DatabaseSettings, PoolConfig
from pool_query.core.database import Database
from pool_query.core.enums import (
    Direction,
    JoinKind,
    LifecycleState,
    Operation,
    Operator,
    PoolKind,
)
from pool_query.core.exceptions import (
    AdapterError,
    InitializationError,
    InvalidArgumentError,
    NotInitializedError,
    PoolQueryError,
    PoolUnavailableError,
    QueryExecutionError,
)
from pool_query.core.lifecycle import SLOW_QUERY_THRESHOLD_MS, PoolManager
from pool_query.core.logging_config import configure_logging
from pool_query.core.renderer import FUNCTION_LITERALS, RenderedStatement
from pool_query.core.router import resolve_pool
from pool_query.core.state import QueryState

__all__ = [
    # Database
    "Database",
    "QueryBuilder",
    "PoolManager",
    "SLOW_QUERY_THRESHOLD_MS",
    # Config
    "PoolConfig",
    "DatabaseSettings",
    "configure_logging",
    # Rendering
    "QueryState",
    "RenderedStatement",
    "FUNCTION_LITERALS",
    "resolve_pool",
    # Adapters
    "AsyncAdapter",
    "ExecutionResult",
    "ResultHeader",
    # Enums
    "PoolKind",
    "Operation",
    "Operator",
    "JoinKind",
    "Direction",
    "LifecycleState",
    # Exceptions
    "PoolQueryError",
    "NotInitializedError",
    "InitializationError",
    "PoolUnavailableError",
    "InvalidArgumentError",
    "QueryExecutionError",
    "AdapterError",
]
