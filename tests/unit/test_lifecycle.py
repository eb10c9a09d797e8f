"""Unit tests for PoolManager lifecycle, execution and timing."""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from pool_query.core import lifecycle
from pool_query.core.config import PoolConfig
from pool_query.core.enums import LifecycleState, PoolKind
from pool_query.core.exceptions import (
    AdapterError,
    InitializationError,
    NotInitializedError,
    QueryExecutionError,
)
from pool_query.core.lifecycle import PoolManager, load_adapter


class TestLoadAdapter:
    def test_known_drivers(self) -> None:
        assert type(load_adapter("mysql")).__name__ == "MysqlAsyncAdapter"
        assert type(load_adapter("SQLite")).__name__ == "SqliteAsyncAdapter"

    def test_unknown_driver(self) -> None:
        with pytest.raises(AdapterError, match="oracle"):
            load_adapter("oracle")


class TestLifecycle:
    async def test_starts_uninitialized(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        assert manager.state is LifecycleState.UNINITIALIZED
        assert manager.configured == frozenset({PoolKind.WRITE})

    async def test_init_creates_and_pings_pools(
        self, fake_adapter, write_config: PoolConfig, read_config: PoolConfig
    ) -> None:
        manager = PoolManager(write=write_config, read=read_config)
        await manager.init()
        assert manager.state is LifecycleState.READY
        assert set(fake_adapter.pools) == {"primary", "replica"}
        for pool in fake_adapter.pools.values():
            assert pool["acquired"] == pool["released"] == 1
        await manager.close()

    async def test_init_twice_is_noop(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        await manager.init()
        first_pool = fake_adapter.pools["primary"]
        await manager.init()
        assert fake_adapter.pools["primary"] is first_pool
        await manager.close()

    async def test_unreachable_write_pool(
        self, fake_adapter, write_config: PoolConfig, read_config: PoolConfig
    ) -> None:
        fake_adapter.unreachable.add("primary")
        manager = PoolManager(write=write_config, read=read_config)
        with pytest.raises(InitializationError, match="'write' pool is unreachable") as exc_info:
            await manager.init()
        assert isinstance(exc_info.value.original_exception, ConnectionRefusedError)
        assert manager.state is LifecycleState.UNINITIALIZED

    async def test_failed_init_closes_created_pools(
        self, fake_adapter, write_config: PoolConfig, read_config: PoolConfig
    ) -> None:
        fake_adapter.unreachable.add("replica")
        manager = PoolManager(write=write_config, read=read_config)
        with pytest.raises(InitializationError):
            await manager.init()
        assert fake_adapter.pools["primary"]["closed"] is True

    async def test_nothing_configured(self, fake_adapter) -> None:
        with pytest.raises(InitializationError, match="no read or write pool"):
            await PoolManager().init()

    async def test_close_is_idempotent(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        await manager.init()
        await manager.close()
        await manager.close()
        assert manager.state is LifecycleState.CLOSED
        assert fake_adapter.pools["primary"]["closed"] is True

    async def test_close_before_init(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        await manager.close()
        assert manager.state is LifecycleState.CLOSED

    async def test_init_after_close(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        await manager.init()
        await manager.close()
        with pytest.raises(InitializationError, match="closed"):
            await manager.init()

    async def test_execute_before_init(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        with pytest.raises(NotInitializedError, match="uninitialized"):
            await manager.execute(PoolKind.WRITE, "SELECT * FROM t")

    async def test_execute_after_close(self, fake_adapter, write_config: PoolConfig) -> None:
        manager = PoolManager(write=write_config)
        await manager.init()
        await manager.close()
        with pytest.raises(NotInitializedError, match="closed"):
            await manager.execute(PoolKind.WRITE, "SELECT * FROM t")

    async def test_concurrent_init_opens_pool_once(
        self, fake_adapter, write_config: PoolConfig
    ) -> None:
        created = []
        original = fake_adapter.create_pool_async

        async def counting_create(config: PoolConfig):
            created.append(config.database)
            await asyncio.sleep(0)
            return await original(config)

        fake_adapter.create_pool_async = counting_create
        manager = PoolManager(write=write_config)
        await asyncio.gather(manager.init(), manager.init(), manager.init())
        assert created == ["primary"]
        await manager.close()


class TestExecute:
    @pytest.fixture
    async def manager(self, fake_adapter, write_config: PoolConfig):
        manager = PoolManager(write=write_config)
        await manager.init()
        yield manager
        await manager.close()

    async def test_releases_connection(self, manager: PoolManager, fake_adapter) -> None:
        await manager.execute(PoolKind.WRITE, "SELECT * FROM t WHERE id = ?", (1,))
        pool = fake_adapter.pools["primary"]
        assert pool["acquired"] == pool["released"] == 2

    async def test_wraps_driver_errors(self, manager: PoolManager, fake_adapter) -> None:
        driver_error = RuntimeError("Duplicate entry '1' for key 'PRIMARY'")
        fake_adapter.fail_with = driver_error
        with pytest.raises(QueryExecutionError, match="Duplicate entry") as exc_info:
            await manager.execute(PoolKind.WRITE, "INSERT INTO t (id) VALUES (?)", (1,))
        assert exc_info.value.original_exception is driver_error
        assert exc_info.value.__cause__ is driver_error
        assert exc_info.value.params == (1,)
        pool = fake_adapter.pools["primary"]
        assert pool["acquired"] == pool["released"]

    async def test_releases_connection_on_cancel(
        self, manager: PoolManager, fake_adapter
    ) -> None:
        started = asyncio.Event()

        async def hanging_execute(connection, sql, params=None):
            started.set()
            await asyncio.sleep(3600)

        fake_adapter.execute_async = hanging_execute
        task = asyncio.create_task(manager.execute(PoolKind.WRITE, "SELECT * FROM t"))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        pool = fake_adapter.pools["primary"]
        assert pool["acquired"] == pool["released"]

    async def test_converts_placeholders_for_format_drivers(
        self, manager: PoolManager, fake_adapter
    ) -> None:
        fake_adapter._paramstyle = "format"
        await manager.execute(PoolKind.WRITE, "SELECT * FROM t WHERE a = ? AND b LIKE ?", (1, "%x%"))
        assert fake_adapter.executed[-1] == (
            "primary",
            "SELECT * FROM t WHERE a = %s AND b LIKE %s",
            (1, "%x%"),
        )

    async def test_slow_query_is_logged(
        self, manager: PoolManager, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ticks = iter([100.0, 100.05])
        monkeypatch.setattr(lifecycle, "perf_counter", lambda: next(ticks))
        with capture_logs() as logs:
            result = await manager.execute(PoolKind.WRITE, "SELECT * FROM t WHERE id = ?", (3,))
        assert result.rows == [{"id": 1, "name": "Alice"}]
        slow = [entry for entry in logs if entry["event"] == "slow_query"]
        assert len(slow) == 1
        assert slow[0]["log_level"] == "warning"
        assert slow[0]["pool"] == "write"
        assert slow[0]["duration_ms"] == pytest.approx(50.0)
        assert slow[0]["param_count"] == 1

    async def test_fast_query_is_not_logged(
        self, manager: PoolManager, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ticks = iter([100.0, 100.019])
        monkeypatch.setattr(lifecycle, "perf_counter", lambda: next(ticks))
        with capture_logs() as logs:
            await manager.execute(PoolKind.WRITE, "SELECT * FROM t")
        assert not [entry for entry in logs if entry["event"] == "slow_query"]

    async def test_waiting_for_a_connection_is_not_timed(
        self, manager: PoolManager, fake_adapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        clock = [100.0]
        monkeypatch.setattr(lifecycle, "perf_counter", lambda: clock[0])

        async def saturated_acquire(pool):
            clock[0] += 1.0
            pool["acquired"] += 1
            return pool["name"]

        monkeypatch.setattr(fake_adapter, "acquire_connection_async", saturated_acquire)
        with capture_logs() as logs:
            await manager.execute(PoolKind.WRITE, "SELECT * FROM t")
        assert not [entry for entry in logs if entry["event"] == "slow_query"]

    async def test_slow_failing_query_still_raises(
        self, manager: PoolManager, fake_adapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ticks = iter([0.0, 1.0])
        monkeypatch.setattr(lifecycle, "perf_counter", lambda: next(ticks))
        fake_adapter.fail_with = RuntimeError("gone away")
        with capture_logs() as logs, pytest.raises(QueryExecutionError):
            await manager.execute(PoolKind.WRITE, "SELECT * FROM t")
        events = [entry["event"] for entry in logs]
        assert "query_failed" in events
        assert "slow_query" in events
