"""Database adapter protocol.

Every adapter module MUST implement AsyncAdapter. Adapters own the driver:
pool creation, connection acquire/release and statement execution. They do
their own value escaping; callers only ever hand them placeholders + params.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pool_query.core.config import PoolConfig


@dataclass(frozen=True)
class ResultHeader:
    """Outcome of a statement that returns no rows."""

    affected_rows: int
    insert_id: int | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Rows for a statement with a result set, otherwise a header."""

    rows: list[dict[str, Any]] | None = None
    header: ResultHeader | None = None


def make_header(rowcount: Any, lastrowid: Any) -> ResultHeader:
    """Build a ResultHeader from DB-API cursor attributes.

    Drivers report ``0``/``None`` for ``lastrowid`` when no id was generated.
    """
    affected = int(rowcount) if rowcount is not None and rowcount >= 0 else 0
    return ResultHeader(affected_rows=affected, insert_id=lastrowid or None)


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style the driver expects: 'qmark' (?) or 'format' (%s)."""
        ...

    async def create_pool_async(self, config: PoolConfig) -> Any:
        """Create a connection pool bounded by ``config.max_connections``."""
        ...

    async def acquire_connection_async(self, pool: Any) -> Any:
        """Acquire a connection, waiting while the pool is saturated."""
        ...

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    async def close_pool_async(self, pool: Any) -> None:
        """Close the pool and every connection it holds."""
        ...

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> ExecutionResult:
        """Execute one statement and return rows or a result header."""
        ...
