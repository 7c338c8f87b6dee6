"""
Shared row types for the report connectors.

Every provider hands back positional values (GA4 dimensionValues/metricValues,
GSC keys, Google Ads field paths). Each query declares a RowSchema and the
connector decodes rows with it as soon as the response arrives, so nothing
downstream ever indexes into a provider row.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


class ReportSourceError(Exception):
    """A provider query failed (auth, quota, permission, transport)."""

    def __init__(self, message: str, status_code: Optional[int] = None, source: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.source = source


@dataclass(frozen=True)
class ReportRow:
    """One provider record with its values bound to names."""
    dimensions: dict = field(default_factory=dict)
    metrics: dict = field(default_factory=dict)

    def dimension(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Dimension value, or `default` when missing or blank."""
        value = self.dimensions.get(name)
        if value is None:
            return default
        value = str(value)
        if not value.strip():
            return default
        return value

    def metric(self, name: str) -> Any:
        return self.metrics.get(name)


@dataclass(frozen=True)
class RowSchema:
    """
    Dimension and metric order of one query.

    `sources` maps a field name to the provider's own field name when they
    differ (Google Ads attribute paths such as "metrics.cost_micros").
    """
    dimensions: tuple = ()
    metrics: tuple = ()
    sources: dict = field(default_factory=dict)

    @classmethod
    def from_sources(cls, dimensions: dict = None, metrics: dict = None) -> "RowSchema":
        """Build a schema from ordered {name: provider_field} mappings."""
        dimensions = dimensions or {}
        metrics = metrics or {}
        return cls(
            dimensions=tuple(dimensions),
            metrics=tuple(metrics),
            sources={**dimensions, **metrics},
        )

    def source(self, name: str) -> str:
        return self.sources.get(name, name)

    @property
    def provider_dimensions(self) -> list:
        return [self.source(name) for name in self.dimensions]

    @property
    def provider_metrics(self) -> list:
        return [self.source(name) for name in self.metrics]

    def decode(self, dimension_values: Sequence, metric_values: Sequence) -> ReportRow:
        """Bind positional provider values to this schema's names."""
        dimension_values = list(dimension_values or [])
        metric_values = list(metric_values or [])
        return ReportRow(
            dimensions={
                name: dimension_values[i] if i < len(dimension_values) else None
                for i, name in enumerate(self.dimensions)
            },
            metrics={
                name: metric_values[i] if i < len(metric_values) else None
                for i, name in enumerate(self.metrics)
            },
        )
