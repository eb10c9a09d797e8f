"""SQLite adapter using aiosqlite.

Meant for local development and tests. MySQL-only syntax (``ON DUPLICATE
KEY UPDATE``, most function literals) is not available on SQLite.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pool_query.adapters.protocol import ExecutionResult, make_header
from pool_query.core.config import PoolConfig


class SqlitePool(asyncio.Queue):
    """Bounded queue of idle connections.

    Once closed, connections handed back by release are closed instead of
    being queued again.
    """

    def __init__(self, maxsize: int) -> None:
        super().__init__(maxsize=maxsize)
        self.closed = False


class SqliteAsyncAdapter:
    """Asynchronous SQLite adapter; the pool is a bounded queue of connections."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    async def create_pool_async(self, config: PoolConfig) -> SqlitePool:
        """Open ``max_connections`` autocommit connections to ``config.database``."""
        import aiosqlite

        pool = SqlitePool(maxsize=config.max_connections)
        try:
            for _ in range(config.max_connections):
                conn = await aiosqlite.connect(config.database, isolation_level=None)
                conn.row_factory = aiosqlite.Row
                pool.put_nowait(conn)
        except Exception:
            await self.close_pool_async(pool)
            raise
        return pool

    async def acquire_connection_async(self, pool: SqlitePool) -> Any:
        if pool.closed:
            raise RuntimeError("SQLite pool is closed")
        return await pool.get()

    async def release_connection_async(self, connection: Any, pool: SqlitePool) -> None:
        if pool.closed:
            await connection.close()
        else:
            pool.put_nowait(connection)

    async def close_pool_async(self, pool: SqlitePool) -> None:
        """Close idle connections now and checked-out ones when released."""
        pool.closed = True
        while not pool.empty():
            conn = pool.get_nowait()
            await conn.close()

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> ExecutionResult:
        cursor = await connection.execute(sql, params or ())
        try:
            if cursor.description is not None:
                rows = await cursor.fetchall()
                return ExecutionResult(rows=[dict(row) for row in rows])
            return ExecutionResult(header=make_header(cursor.rowcount, cursor.lastrowid))
        finally:
            await cursor.close()
