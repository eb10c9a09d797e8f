"""PoolQuery exception hierarchy.

Every error raised by a terminal operation is a PoolQueryError. Raw driver
exceptions are wrapped and kept on ``original_exception``.
"""

from __future__ import annotations

from typing import Any


class PoolQueryError(Exception):
    """Base exception for all PoolQuery errors."""


# --- Lifecycle ---


class NotInitializedError(PoolQueryError):
    """Raised when a query runs before init() or after close()."""

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"Database is not ready (state: '{state}'); call init() first")


class InitializationError(PoolQueryError):
    """Raised when init() cannot bring the configured pools up."""

    def __init__(self, detail: str, original_exception: Exception | None = None) -> None:
        self.original_exception = original_exception
        super().__init__(f"Initialization failed: {detail}")


# --- Routing ---


class PoolUnavailableError(PoolQueryError):
    """Raised when the pool an operation needs was never configured."""

    def __init__(self, pool: str, operation: str) -> None:
        self.pool = pool
        self.operation = operation
        super().__init__(f"No '{pool}' pool configured for operation '{operation}'")


# --- Builder ---


class InvalidArgumentError(PoolQueryError, ValueError):
    """Raised synchronously by builder calls given a malformed argument."""


# --- Execution ---


class QueryExecutionError(PoolQueryError):
    """Raised when the driver fails to execute a statement."""

    def __init__(
        self,
        sql: str,
        params: tuple[Any, ...],
        original_exception: Exception,
    ) -> None:
        self.sql = sql
        self.params = params
        self.original_exception = original_exception
        super().__init__(
            f"{type(original_exception).__name__} while executing '{sql}': {original_exception}"
        )


# --- Adapter ---


class AdapterError(PoolQueryError):
    """Raised when a driver adapter cannot be loaded."""
