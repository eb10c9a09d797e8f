"""MySQL adapter using aiomysql."""

from __future__ import annotations

from typing import Any

from pool_query.adapters.protocol import ExecutionResult, make_header
from pool_query.core.config import PoolConfig


class MysqlAsyncAdapter:
    """Asynchronous MySQL adapter backed by an ``aiomysql`` pool."""

    @property
    def paramstyle(self) -> str:
        return "format"

    async def create_pool_async(self, config: PoolConfig) -> Any:
        """Create an aiomysql pool with at most ``max_connections`` connections."""
        import aiomysql

        return await aiomysql.create_pool(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password or "",
            db=config.database,
            charset=config.charset,
            minsize=1,
            maxsize=config.max_connections,
            connect_timeout=config.connect_timeout,
            autocommit=True,
            **config.extra,
        )

    async def acquire_connection_async(self, pool: Any) -> Any:
        return await pool.acquire()

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        # aiomysql's Pool.release is not a coroutine
        pool.release(connection)

    async def close_pool_async(self, pool: Any) -> None:
        pool.close()
        await pool.wait_closed()

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> ExecutionResult:
        """Execute SQL with a DictCursor."""
        import aiomysql

        async with connection.cursor(aiomysql.DictCursor) as cursor:
            await cursor.execute(sql, params or None)
            if cursor.description is not None:
                rows = await cursor.fetchall()
                return ExecutionResult(rows=[dict(row) for row in rows])
            return ExecutionResult(header=make_header(cursor.rowcount, cursor.lastrowid))
