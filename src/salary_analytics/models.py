"""Pydantic models for salary records, store projections and analytics snapshots.

Records mirror the documents of the `salary_entries` collection. Snapshot
models are what the analytics facade returns; they serialise to camelCase JSON
(`model_dump(by_alias=True)`) and accept snake_case or camelCase on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer, model_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =========================================================
# RECORDS
# =========================================================

class Raise(_CamelModel):
    """A single raise within one employment record."""
    raise_date: datetime
    new_salary: int = Field(..., gt=0)
    percentage: float
    created_at: datetime = Field(default_factory=utc_now)


class SalaryRecord(_CamelModel):
    """Schema for one stored salary-survey entry.

    Attributes:
        entry_id: Stable identifier used as the upsert key on import.
        position: Role / job title.
        level: Seniority level.
        tech_stack: Zero or more technology tags.
        experience: Experience band.
        company: Employer.
        company_size: Employer-size band.
        work_type: Work arrangement (office, remote, hybrid).
        city: City of employment.
        currency: ISO currency code of the salary figures.
        salary_min: Lower bound of the reported salary range.
        salary_max: Optional upper bound of the reported salary range.
        raise_period: Raise-review period (1-4).
        start_time: Employment start.
        end_time: Employment end, ``None`` while still employed.
        raises: Raises in chronological order.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")
    entry_id: str | None = None
    position: str = ""
    level: str = ""
    tech_stack: list[str] = Field(default_factory=list)
    experience: str = ""
    company: str = ""
    company_size: str = ""
    work_type: str = ""
    city: str = ""
    currency: str = ""
    salary_min: int = Field(..., gt=0)
    salary_max: int | None = None
    raise_period: int = Field(1, ge=1, le=4)
    start_time: datetime
    end_time: datetime | None = None
    raises: list[Raise] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _check_salary_range(self) -> "SalaryRecord":
        if self.salary_max is not None and self.salary_max < self.salary_min:
            raise ValueError("salary_max must be greater than or equal to salary_min")
        return self


class AnalyticsFilter(BaseModel):
    """Optional role / level / currency constraints; ``None`` or ``""`` means unconstrained."""
    model_config = ConfigDict(frozen=True)
    role: str | None = None
    level: str | None = None
    currency: str | None = None

    def constraints(self) -> dict[str, str]:
        """Return only the populated constraints keyed by filter name."""
        values = {"role": self.role, "level": self.level, "currency": self.currency}
        return {k: v for k, v in values.items() if v}


# =========================================================
# STORE PROJECTIONS
# =========================================================

class CategoryStat(_CamelModel):
    """Grouped statistics of `salary_min` for one value of one dimension."""
    category: str
    average: float
    min: float
    max: float
    count: int = Field(..., ge=0)


class CombinedStats(BaseModel):
    """Count, overall average and per-dimension groups taken from one snapshot."""
    total_count: int = 0
    overall_average: float = 0.0
    by_dimension: dict[str, list[CategoryStat]] = Field(default_factory=dict)


class JobChangeRecord(BaseModel):
    """Projection used for job-change statistics."""
    salary_min: int
    salary_max: int | None = None
    raises: list[Raise] = Field(default_factory=list)


class RaiseTimelineRecord(BaseModel):
    """Projection used for raise-cadence statistics."""
    raises: list[Raise] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime | None = None


# =========================================================
# SNAPSHOTS
# =========================================================

class ChartDataPoint(_CamelModel):
    """One bar of a chart; `count` is omitted from output when not set."""
    name: str
    value: int
    count: int | None = None

    @model_serializer(mode="wrap")
    def _omit_missing_count(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if self.count is None:
            data.pop("count", None)
        return data


class AnalyticsSnapshot(_CamelModel):
    """General analytics for one (level, role, currency) filter."""
    total_entries: int = 0
    average_salary: float = 0.0

    average_salary_by_role: dict[str, float] = Field(default_factory=dict)
    min_salary_by_role: dict[str, float] = Field(default_factory=dict)
    max_salary_by_role: dict[str, float] = Field(default_factory=dict)
    average_salary_by_level: dict[str, float] = Field(default_factory=dict)
    min_salary_by_level: dict[str, float] = Field(default_factory=dict)
    max_salary_by_level: dict[str, float] = Field(default_factory=dict)
    average_salary_by_tech: dict[str, float] = Field(default_factory=dict)
    min_salary_by_tech: dict[str, float] = Field(default_factory=dict)
    max_salary_by_tech: dict[str, float] = Field(default_factory=dict)
    average_salary_by_experience: dict[str, float] = Field(default_factory=dict)
    min_salary_by_experience: dict[str, float] = Field(default_factory=dict)
    max_salary_by_experience: dict[str, float] = Field(default_factory=dict)
    average_salary_by_company: dict[str, float] = Field(default_factory=dict)
    min_salary_by_company: dict[str, float] = Field(default_factory=dict)
    max_salary_by_company: dict[str, float] = Field(default_factory=dict)
    average_salary_by_city: dict[str, float] = Field(default_factory=dict)
    min_salary_by_city: dict[str, float] = Field(default_factory=dict)
    max_salary_by_city: dict[str, float] = Field(default_factory=dict)
    average_salary_by_company_size: dict[str, float] = Field(default_factory=dict)
    min_salary_by_company_size: dict[str, float] = Field(default_factory=dict)
    max_salary_by_company_size: dict[str, float] = Field(default_factory=dict)
    average_salary_by_work_type: dict[str, float] = Field(default_factory=dict)
    min_salary_by_work_type: dict[str, float] = Field(default_factory=dict)
    max_salary_by_work_type: dict[str, float] = Field(default_factory=dict)
    average_salary_by_currency: dict[str, float] = Field(default_factory=dict)
    min_salary_by_currency: dict[str, float] = Field(default_factory=dict)
    max_salary_by_currency: dict[str, float] = Field(default_factory=dict)

    top_paying_roles: list[ChartDataPoint] = Field(default_factory=list)
    top_paying_techs: list[ChartDataPoint] = Field(default_factory=list)
    salary_ranges: list[ChartDataPoint] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)


class JobChangeStats(_CamelModel):
    average_salary_increase: float = 0.0
    percentage_with_increase: float = 0.0


class RaiseStats(_CamelModel):
    average_per_year: float = 0.0
    average_percentage: float = 0.0
    median_time_between_raises: int = 0


class CareerSnapshot(_CamelModel):
    """Longitudinal statistics across every record that has raises."""
    job_changes: JobChangeStats = Field(default_factory=JobChangeStats)
    raises: RaiseStats = Field(default_factory=RaiseStats)
