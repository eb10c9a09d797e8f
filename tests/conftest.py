"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from pool_query.adapters.protocol import ExecutionResult, ResultHeader
from pool_query.core import lifecycle
from pool_query.core.builder import QueryBuilder
from pool_query.core.config import PoolConfig
from pool_query.core.database import Database


class FakeAdapter:
    """In-memory AsyncAdapter that records every statement it receives.

    Connections are the pool's ``database`` name, so tests can tell which
    pool served a statement.
    """

    def __init__(self, paramstyle: str = "qmark") -> None:
        self._paramstyle = paramstyle
        self.pools: dict[str, dict[str, Any]] = {}
        self.executed: list[tuple[str, str, tuple[Any, ...] | None]] = []
        self.unreachable: set[str] = set()
        self.fail_with: Exception | None = None
        self.rows: list[dict[str, Any]] = [{"id": 1, "name": "Alice"}]
        self.header = ResultHeader(affected_rows=1, insert_id=42)

    @property
    def paramstyle(self) -> str:
        return self._paramstyle

    async def create_pool_async(self, config: PoolConfig) -> dict[str, Any]:
        if config.database in self.unreachable:
            raise ConnectionRefusedError(f"cannot reach {config.database}")
        pool = {"name": config.database, "acquired": 0, "released": 0, "closed": False}
        self.pools[config.database] = pool
        return pool

    async def acquire_connection_async(self, pool: dict[str, Any]) -> str:
        pool["acquired"] += 1
        return pool["name"]

    async def release_connection_async(self, connection: str, pool: dict[str, Any]) -> None:
        pool["released"] += 1

    async def close_pool_async(self, pool: dict[str, Any]) -> None:
        pool["closed"] = True

    async def execute_async(
        self,
        connection: str,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> ExecutionResult:
        if sql == "SELECT 1":
            return ExecutionResult(rows=[{"1": 1}])
        self.executed.append((connection, sql, params))
        if self.fail_with is not None:
            raise self.fail_with
        if sql.lstrip().upper().startswith("SELECT"):
            return ExecutionResult(rows=[dict(row) for row in self.rows])
        return ExecutionResult(header=self.header)


@pytest.fixture
def fake_adapter(monkeypatch: pytest.MonkeyPatch) -> FakeAdapter:
    """Route every driver name to one shared FakeAdapter."""
    adapter = FakeAdapter()
    monkeypatch.setattr(lifecycle, "load_adapter", lambda driver: adapter)
    return adapter


@pytest.fixture
def write_config() -> PoolConfig:
    return PoolConfig(host="db-primary", database="primary", user="app", password="secret")


@pytest.fixture
def read_config() -> PoolConfig:
    return PoolConfig(host="db-replica", database="replica", user="app", password="secret")


@pytest.fixture
async def fake_db(
    fake_adapter: FakeAdapter, write_config: PoolConfig, read_config: PoolConfig
):
    """An initialized Database with both pools backed by FakeAdapter."""
    db = Database(write=write_config, read=read_config)
    await db.init()
    yield db
    await db.close()


@pytest.fixture
def builder(fake_adapter: FakeAdapter, write_config: PoolConfig) -> QueryBuilder:
    """A builder handle that is never executed."""
    return QueryBuilder(Database(write=write_config))


@pytest.fixture
def sqlite_config(tmp_path: Path) -> PoolConfig:
    """SQLite file-backed pool config."""
    return PoolConfig(driver="sqlite", database=str(tmp_path / "app.db"), max_connections=2)
