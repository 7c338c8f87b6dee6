"""
Row grouping.

Folds decoded report rows into {group key: rows}. Key functions substitute a
source-specific default when the dimension is missing or blank, so every row
lands in some group.
"""

from typing import Callable, Hashable, Iterable, Optional

from connectors.base import ReportRow

KeyFn = Callable[[ReportRow], Hashable]


def group_rows(rows: Iterable[ReportRow], key_fn: KeyFn) -> dict:
    """Group rows by key. Empty input gives an empty dict."""
    grouped: dict = {}
    for row in rows:
        grouped.setdefault(key_fn(row), []).append(row)
    return grouped


def by_dimension(name: str, default: str, normalize: Optional[Callable[[str], str]] = None) -> KeyFn:
    """Key on one dimension, falling back to `default` when blank."""
    def key_fn(row: ReportRow) -> str:
        value = row.dimension(name, default)
        return normalize(value) if normalize else value
    return key_fn


def by_dimensions(*key_fns: KeyFn) -> KeyFn:
    """Composite key: a tuple of the given key functions' values."""
    def key_fn(row: ReportRow) -> tuple:
        return tuple(fn(row) for fn in key_fns)
    return key_fn
