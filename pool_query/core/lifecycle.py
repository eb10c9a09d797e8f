"""Pool lifecycle management.

PoolManager owns the read and write pools from init() to close(), hands out
connections through an async context manager that always releases them, and
times every statement so slow ones are logged.
"""

from __future__ import annotations

import asyncio
import importlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Any

import structlog

from pool_query.adapters.protocol import ExecutionResult
from pool_query.core.config import PoolConfig
from pool_query.core.enums import LifecycleState, PoolKind
from pool_query.core.exceptions import (
    AdapterError,
    InitializationError,
    NotInitializedError,
    QueryExecutionError,
)
from pool_query.core.params import convert_placeholders

logger = structlog.get_logger(__name__)

SLOW_QUERY_THRESHOLD_MS = 20.0

# Adapter module mapping: driver name → (module_path, class_name)
_ADAPTER_MAP: dict[str, tuple[str, str]] = {
    "mysql": ("pool_query.adapters.mysql", "MysqlAsyncAdapter"),
    "sqlite": ("pool_query.adapters.sqlite", "SqliteAsyncAdapter"),
}


def load_adapter(driver: str) -> Any:
    """Load an async adapter by driver name."""
    driver_lower = driver.lower()
    if driver_lower not in _ADAPTER_MAP:
        raise AdapterError(f"Unsupported database driver: {driver}")

    module_path, cls_name = _ADAPTER_MAP[driver_lower]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e


class PoolManager:
    """Owns both pools and their Uninitialized → Ready → Closed lifecycle."""

    def __init__(
        self,
        write: PoolConfig | None = None,
        read: PoolConfig | None = None,
    ) -> None:
        self._configs: dict[PoolKind, PoolConfig] = {}
        if write is not None:
            self._configs[PoolKind.WRITE] = write
        if read is not None:
            self._configs[PoolKind.READ] = read
        self._adapters: dict[PoolKind, Any] = {
            kind: load_adapter(config.driver) for kind, config in self._configs.items()
        }
        self._pools: dict[PoolKind, Any] = {}
        self._state = LifecycleState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def configured(self) -> frozenset[PoolKind]:
        """Pool kinds that were given a config."""
        return frozenset(self._configs)

    async def init(self) -> None:
        """Create and ping every configured pool.

        Raises:
            InitializationError: If no pool is configured, the manager was
                already closed, or a pool cannot be reached.
        """
        async with self._lock:
            if self._state is LifecycleState.READY:
                return
            if self._state is LifecycleState.CLOSED:
                raise InitializationError("the database was closed and cannot be reopened")
            if not self._configs:
                raise InitializationError("no read or write pool configured")

            # Write first: it is the pool that must be reachable.
            for kind in sorted(self._configs, key=lambda k: k is not PoolKind.WRITE):
                try:
                    await self._open_pool(kind)
                except Exception as e:
                    await self._close_pools()
                    raise InitializationError(
                        f"'{kind.value}' pool is unreachable: {e}", e
                    ) from e

            self._state = LifecycleState.READY
            logger.info("database_ready", pools=sorted(k.value for k in self._pools))

    async def _open_pool(self, kind: PoolKind) -> None:
        config = self._configs[kind]
        adapter = self._adapters[kind]
        pool = await adapter.create_pool_async(config)
        self._pools[kind] = pool

        conn = await adapter.acquire_connection_async(pool)
        try:
            await adapter.execute_async(conn, "SELECT 1")
        finally:
            await adapter.release_connection_async(conn, pool)

        logger.info(
            "pool_created",
            pool=kind.value,
            driver=config.driver,
            host=config.host,
            database=config.database,
            max_connections=config.max_connections,
        )

    async def close(self) -> None:
        """Drain both pools. Idempotent; the manager cannot be reused."""
        async with self._lock:
            if self._state is LifecycleState.CLOSED:
                return
            self._state = LifecycleState.CLOSED
            await self._close_pools()
            logger.info("database_closed")

    async def _close_pools(self) -> None:
        while self._pools:
            kind, pool = self._pools.popitem()
            await self._adapters[kind].close_pool_async(pool)
            logger.info("pool_closed", pool=kind.value)

    def require_ready(self) -> None:
        if self._state is not LifecycleState.READY:
            raise NotInitializedError(self._state.value)

    @asynccontextmanager
    async def connection(self, kind: PoolKind) -> AsyncIterator[Any]:
        """Acquire a connection from the *kind* pool as an async context manager.

        The connection goes back to the pool on every exit path, including
        cancellation of the awaiting task.
        """
        self.require_ready()
        adapter = self._adapters[kind]
        pool = self._pools[kind]
        connection = await adapter.acquire_connection_async(pool)
        try:
            yield connection
        finally:
            await adapter.release_connection_async(connection, pool)

    async def execute(
        self,
        kind: PoolKind,
        sql: str,
        params: tuple[Any, ...] = (),
    ) -> ExecutionResult:
        """Execute one ``?``-placeholder statement on the *kind* pool.

        Raises:
            NotInitializedError: If the manager is not ready.
            QueryExecutionError: If the driver fails, wrapping its exception.
        """
        self.require_ready()
        adapter = self._adapters[kind]
        driver_sql = convert_placeholders(sql, adapter.paramstyle, bool(params))

        try:
            async with self.connection(kind) as conn:
                # Time the statement only, not the wait for a free connection
                started = perf_counter()
                try:
                    return await adapter.execute_async(conn, driver_sql, params)
                finally:
                    self._report_duration(kind, sql, params, started)
        except Exception as e:
            logger.error(
                "query_failed",
                pool=kind.value,
                sql=sql,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise QueryExecutionError(sql, params, e) from e

    def _report_duration(
        self, kind: PoolKind, sql: str, params: tuple[Any, ...], started: float
    ) -> None:
        duration_ms = (perf_counter() - started) * 1000
        if duration_ms > SLOW_QUERY_THRESHOLD_MS:
            logger.warning(
                "slow_query",
                pool=kind.value,
                duration_ms=round(duration_ms, 3),
                sql=sql,
                param_count=len(params),
            )
