"""Placeholder handling.

Statements are written and rendered with ``?`` placeholders. Before
execution they are converted to the adapter's paramstyle: ``qmark`` (no
conversion) or ``format`` (``%s``, with literal ``%`` doubled). Quoted
strings and identifiers are left untouched.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

# Single/double-quoted strings (backslash escapes) and backtick identifiers
_QUOTED_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|`[^`]*`")


def _split_quoted(sql: str) -> list[tuple[bool, str]]:
    """Split *sql* into ``(is_quoted, text)`` segments."""
    parts: list[tuple[bool, str]] = []
    last_end = 0
    for match in _QUOTED_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append((False, sql[last_end:start]))
        parts.append((True, match.group()))
        last_end = end
    if last_end < len(sql):
        parts.append((False, sql[last_end:]))
    return parts


@lru_cache(maxsize=512)
def count_placeholders(sql: str) -> int:
    """Count ``?`` placeholders outside quoted strings and identifiers."""
    return sum(text.count("?") for quoted, text in _split_quoted(sql) if not quoted)


def convert_placeholders(sql: str, paramstyle: str, has_params: bool = True) -> str:
    """Convert ``?`` placeholders to *paramstyle*.

    Args:
        sql: SQL with ``?`` placeholders.
        paramstyle: ``qmark`` (returned as-is) or ``format`` (``%s``).
        has_params: Whether params will be passed to the driver. Format-style
            drivers only interpolate (and so only need ``%`` escaped) when
            they receive params.
    """
    if paramstyle == "qmark":
        return sql
    if paramstyle != "format":
        raise ValueError(f"Unsupported paramstyle: {paramstyle!r}")
    if not has_params:
        return sql
    return _convert_to_format(sql)


@lru_cache(maxsize=256)
def _convert_to_format(sql: str) -> str:
    parts: list[str] = []
    for quoted, text in _split_quoted(sql):
        text = text.replace("%", "%%")
        if not quoted:
            text = text.replace("?", "%s")
        parts.append(text)
    return "".join(parts)


def coerce_params(params: Any) -> tuple[Any, ...]:
    """Normalize *params* to a tuple.

    * ``None`` → empty tuple.
    * ``tuple`` / ``list`` → tuple.
    * Any other scalar → wrapped in a single-element tuple.
    """
    if params is None:
        return ()
    if isinstance(params, (tuple, list)):
        return tuple(params)
    return (params,)
