"""
Metric aggregation for grouped report rows.

A MetricSpec lists the output fields: which row metric each reads, how it is
parsed, which unit conversion applies and whether it is summed or averaged.
Conversions happen here, when values leave the provider row, and nowhere
else; aggregate output is plain numbers and cannot be fed back in.

Derived ratios (CTR, CPC, cost per conversion) are computed from the summed
numerator and denominator after all rows are folded.
"""

import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional

from connectors.base import ReportRow

MICROS_PER_UNIT = 1_000_000

SUM = "sum"
AVG = "avg"

# Running-average modes for AVG fields
PAIRWISE = "pairwise"  # (existing + new) / 2 per merged row
MEAN = "mean"


def to_number(value: Any, kind: str = "float"):
    """
    Parse a provider metric value; anything unparsable counts as 0.

    kind="int" truncates toward zero like parseInt.
    """
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).replace(",", "").strip())
        except (TypeError, ValueError):
            return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    if kind == "int":
        return int(number)
    return number


@dataclass(frozen=True)
class MetricField:
    name: str
    source: Optional[str] = None
    reduce: str = SUM
    kind: str = "float"
    unit: Optional[str] = None  # "micros" or "percent"

    def read(self, row: ReportRow):
        value = to_number(row.metric(self.source or self.name), self.kind)
        if self.unit == "micros":
            return value / MICROS_PER_UNIT
        if self.unit == "percent":
            return value * 100
        return value


@dataclass(frozen=True)
class DerivedField:
    """numerator / denominator * scale, or 0 when the denominator is 0."""
    name: str
    numerator: str
    denominator: str
    scale: float = 1.0

    def compute(self, record: dict) -> float:
        denominator = record.get(self.denominator, 0)
        if not denominator:
            return 0
        return record.get(self.numerator, 0) / denominator * self.scale


@dataclass(frozen=True)
class MetricSpec:
    fields: tuple
    derived: tuple = ()
    averaging: str = PAIRWISE

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields] + [d.name for d in self.derived]

    def with_averaging(self, averaging: str) -> "MetricSpec":
        return replace(self, averaging=averaging)

    def empty(self) -> dict:
        return {name: 0 for name in self.names}


def aggregate_rows(rows: Iterable[ReportRow], spec: MetricSpec) -> dict:
    """Fold rows into one record holding every field of `spec`."""
    record = {f.name: 0 for f in spec.fields}
    seen: dict[str, int] = {}

    for row in rows:
        for f in spec.fields:
            value = f.read(row)
            if f.reduce == SUM:
                record[f.name] += value
                continue

            count = seen.get(f.name, 0)
            if count == 0:
                record[f.name] = value
            elif spec.averaging == MEAN:
                record[f.name] += (value - record[f.name]) / (count + 1)
            else:
                record[f.name] = (record[f.name] + value) / 2
            seen[f.name] = count + 1

    for d in spec.derived:
        record[d.name] = d.compute(record)

    return record


def aggregate(grouped: dict, spec: MetricSpec) -> dict:
    """{group key: rows} -> {group key: record}."""
    return {key: aggregate_rows(rows, spec) for key, rows in grouped.items()}


def total_of(aggregates: dict, field_name: str) -> float:
    """Sum one field across all groups of an aggregate."""
    return sum(record.get(field_name, 0) for record in aggregates.values())
