"""Pool routing.

Decides which pool serves an operation. An explicit hint always wins over
the operation kind; a missing read pool falls back to the write pool; a
missing write pool is never substituted.
"""

from __future__ import annotations

from collections.abc import Collection

import structlog

from pool_query.core.enums import Operation, PoolKind
from pool_query.core.exceptions import PoolUnavailableError

logger = structlog.get_logger(__name__)


def resolve_pool(
    operation: Operation,
    hint: PoolKind | None,
    configured: Collection[PoolKind],
) -> PoolKind:
    """Return the pool kind that must serve *operation*.

    Args:
        operation: The terminal operation being executed.
        hint: Explicit pool hint from ``table(name, hint)`` or a raw call.
        configured: Pool kinds that exist on the manager.

    Raises:
        PoolUnavailableError: If the resolved pool is not configured and no
            fallback applies.
    """
    wanted = hint
    if wanted is None:
        wanted = PoolKind.WRITE if operation.is_write else PoolKind.READ
    elif wanted is PoolKind.READ and operation.is_write:
        logger.warning(
            "write_on_read_pool",
            operation=operation.value,
            detail="explicit read hint wins over write operation",
        )

    if wanted is PoolKind.READ:
        if PoolKind.READ in configured:
            return PoolKind.READ
        wanted = PoolKind.WRITE

    if PoolKind.WRITE in configured:
        return PoolKind.WRITE
    raise PoolUnavailableError(wanted.value, operation.value)
