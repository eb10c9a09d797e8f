"""Database entry point.

A Database ties the PoolManager, the pool router and the query builder
together. Instances are independent: create one per process (or per test)
and drive its lifecycle with init()/close() or ``async with``.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

from pool_query.adapters.protocol import ExecutionResult, ResultHeader
from pool_query.core.builder import QueryBuilder
from pool_query.core.config import DatabaseSettings, PoolConfig
from pool_query.core.enums import LifecycleState, Operation, PoolKind
from pool_query.core.exceptions import InvalidArgumentError
from pool_query.core.lifecycle import PoolManager
from pool_query.core.params import coerce_params, count_placeholders
from pool_query.core.renderer import RenderedStatement
from pool_query.core.router import resolve_pool
from pool_query.core.state import parse_pool_kind


class Database:
    """Dual-pool database access: a write pool and an optional read pool."""

    def __init__(
        self,
        write: PoolConfig | None = None,
        read: PoolConfig | None = None,
    ) -> None:
        self._manager = PoolManager(write=write, read=read)

    @classmethod
    def from_settings(cls, settings: DatabaseSettings | None = None) -> Database:
        """Create a Database from DatabaseSettings.

        Args:
            settings: Settings instance. Loaded from the environment
                (``POOL_QUERY_*``) when omitted.

        Returns:
            Database instance (not yet initialized)
        """
        if settings is None:
            settings = DatabaseSettings()
        return cls(write=settings.write, read=settings.read)

    @property
    def state(self) -> LifecycleState:
        return self._manager.state

    @property
    def manager(self) -> PoolManager:
        return self._manager

    async def init(self) -> None:
        """Open the configured pools. See PoolManager.init()."""
        await self._manager.init()

    async def close(self) -> None:
        """Close both pools. Safe to call more than once."""
        await self._manager.close()

    async def __aenter__(self) -> Database:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def table(self, name: str, target: PoolKind | str | None = None) -> QueryBuilder:
        """Start a query chain on a fresh builder handle."""
        return QueryBuilder(self).table(name, target)

    async def read(
        self,
        sql: str,
        params: Any = None,
        *,
        hint: PoolKind | str | None = None,
    ) -> list[dict[str, Any]]:
        """Run a raw ``?``-placeholder statement and return its rows."""
        statement = _raw_statement(sql, params)
        result = await self.execute(Operation.READ, parse_pool_kind(hint), statement)
        return result.rows or []

    async def write(self, sql: str, params: Any = None) -> ResultHeader:
        """Run a raw ``?``-placeholder statement on the write pool."""
        statement = _raw_statement(sql, params)
        result = await self.execute(Operation.WRITE, None, statement)
        return self.header_of(result)

    async def execute(
        self,
        operation: Operation,
        hint: PoolKind | None,
        statement: RenderedStatement,
    ) -> ExecutionResult:
        """Route *statement* to a pool and run it."""
        # Lifecycle errors take precedence over routing errors.
        self._manager.require_ready()
        kind = resolve_pool(operation, hint, self._manager.configured)
        return await self._manager.execute(kind, statement.sql, statement.params)

    @staticmethod
    def header_of(result: ExecutionResult) -> ResultHeader:
        if result.header is not None:
            return result.header
        return ResultHeader(affected_rows=len(result.rows or []))


def _raw_statement(sql: str, params: Any) -> RenderedStatement:
    if not isinstance(sql, str) or not sql.strip():
        raise InvalidArgumentError("sql must be a non-empty string")
    bound = coerce_params(params)
    expected = count_placeholders(sql)
    if expected != len(bound):
        raise InvalidArgumentError(
            f"Statement has {expected} placeholder(s) but {len(bound)} param(s)"
        )
    return RenderedStatement(sql=sql, params=bound)
