"""Pool configuration and settings loading.

PoolConfig is a Pydantic model describing one pool. DatabaseSettings loads
the read and write pool configs from ``POOL_QUERY_*`` environment variables
(or a ``.env`` file) using pydantic-settings.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PoolConfig(BaseModel):
    """Configuration for a single connection pool."""

    driver: str = "mysql"
    host: str = "127.0.0.1"
    port: int = 3306
    user: str | None = None
    password: str | None = None
    database: str
    charset: str = "utf8mb4"
    max_connections: int = Field(default=10, gt=0)
    connect_timeout: int = Field(default=10, gt=0)
    extra: dict[str, Any] = {}


class DatabaseSettings(BaseSettings):
    """Read/write pool settings loaded from the environment.

    Nested fields use a double underscore, e.g. ``POOL_QUERY_WRITE__HOST``
    or ``POOL_QUERY_READ__MAX_CONNECTIONS``.
    """

    model_config = SettingsConfigDict(
        env_prefix="POOL_QUERY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    read: PoolConfig | None = None
    write: PoolConfig | None = None
