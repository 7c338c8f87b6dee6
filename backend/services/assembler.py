"""
Response assembly helpers: rounding, shares of total and breakdown lists.

Rounding happens only here, on values about to leave the API.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

from services.aggregation import total_of


def round_to(value, digits: int):
    """Round half away from zero; digits=0 returns an int."""
    if value is None:
        return 0
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return 0
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def share(value: float, total: float) -> float:
    """Percentage of `total`; 0 when the total is 0."""
    if not total:
        return 0
    return value / total * 100


def round_record(record: dict, precision: dict) -> dict:
    """Copy of `record` with each field in `precision` rounded to its digits."""
    rounded = dict(record)
    for name, digits in precision.items():
        if name in rounded:
            rounded[name] = round_to(rounded[name], digits)
    return rounded


def build_breakdown(
    aggregates: dict,
    label: str,
    sort_by: str = None,
    limit: int = None,
    share_of: str = None,
    labels=None,
) -> list[dict]:
    """
    Breakdown list from an aggregate.

    Each entry carries the group label, the group's record and, when
    `share_of` is given, `percentage`: the group's share of that field's
    total over all groups of the same aggregate (computed before `limit`).

    Args:
        aggregates: {group key: record}
        label: Output key for the group key
        sort_by: Field to sort by, descending
        limit: Keep the first N entries after sorting
        share_of: Field the percentage share is computed from
        labels: Optional callable mapping a group key to its display label
    """
    total = total_of(aggregates, share_of) if share_of else 0

    entries = []
    for key, record in aggregates.items():
        entry = {label: labels(key) if labels else key, **record}
        if share_of:
            entry["percentage"] = share(record.get(share_of, 0), total)
        entries.append(entry)

    if sort_by:
        entries.sort(key=lambda e: e.get(sort_by, 0), reverse=True)

    if limit is not None:
        entries = entries[:limit]
    return entries
