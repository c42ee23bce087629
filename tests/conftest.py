from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from salary_analytics.models import Raise, SalaryRecord

T0 = datetime(2022, 1, 1, tzinfo=timezone.utc)


def make_record(**overrides: object) -> SalaryRecord:
    values: dict[str, object] = {
        "position": "Backend",
        "level": "Senior",
        "tech_stack": ["Go"],
        "experience": "5-7",
        "company": "Acme",
        "company_size": "50-250",
        "work_type": "Remote",
        "city": "Istanbul",
        "currency": "USD",
        "salary_min": 100_000,
        "start_time": T0,
    }
    values.update(overrides)
    return SalaryRecord.model_validate(values)


@pytest.fixture
def sample_records() -> list[SalaryRecord]:
    return [
        make_record(salary_min=150_000, salary_max=170_000, tech_stack=["Go", "Docker"]),
        make_record(salary_min=130_000, tech_stack=["Python"], level="Mid", city="Ankara"),
        make_record(
            position="Frontend",
            salary_min=120_000,
            tech_stack=[],
            company="",
            raises=[
                Raise(raise_date=T0 + timedelta(days=180), new_salary=140_000, percentage=16.7),
                Raise(raise_date=T0 + timedelta(days=540), new_salary=150_000, percentage=7.1),
            ],
        ),
        make_record(position="Backend", level="Junior", currency="TRY", salary_min=60_000, tech_stack=["Go"]),
    ]
