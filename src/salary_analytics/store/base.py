"""Record-store contract consumed by the analytics engine.

Any object satisfying `RecordStore` can back the engine. Dimensions are
addressed by their stored field name (``"position"``, ``"level"``...); the
filter names a role, but records store it under ``position``.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from salary_analytics.models import (
    AnalyticsFilter,
    CategoryStat,
    CombinedStats,
    JobChangeRecord,
    RaiseTimelineRecord,
)

# Filter attribute -> stored field
FILTER_FIELDS: dict[str, str] = {
    "role": "position",
    "level": "level",
    "currency": "currency",
}

SALARY_FIELD = "salary_min"
TECH_FIELD = "tech_stack"


def filter_fields(flt: AnalyticsFilter | None) -> dict[str, str]:
    """Translate a filter into ``{stored_field: value}`` equality constraints."""
    if flt is None:
        return {}
    return {FILTER_FIELDS[name]: value for name, value in flt.constraints().items()}


@runtime_checkable
class RecordStore(Protocol):
    """Read-only query service over salary records."""

    def group_by_dimension(self, dimension: str, flt: AnalyticsFilter | None = None) -> list[CategoryStat]:
        ...

    def group_by_technology(self, flt: AnalyticsFilter | None = None) -> list[CategoryStat]:
        ...

    def count_and_average(self, flt: AnalyticsFilter | None = None) -> tuple[int, float]:
        ...

    def combined(self, flt: AnalyticsFilter | None, dimensions: Mapping[str, str]) -> CombinedStats:
        """Count/average plus one group list per ``{key: field}`` from a single snapshot."""
        ...

    def records_with_raises(self) -> list[JobChangeRecord]:
        ...

    def records_with_raise_timeline(self) -> list[RaiseTimelineRecord]:
        ...

    def distinct_values(self, dimension: str) -> list[str]:
        ...
