from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import pytest

from salary_analytics.errors import ImportFormatError
from salary_analytics.ingest.survey import (
    HYBRID_WORK_TYPE,
    SURVEY_COLUMNS,
    analyze_tech_stacks,
    extract_currency_code,
    normalize_row,
    normalize_survey_ddf,
    normalize_work_type,
    parse_salary_range,
    parse_tech_stack,
    read_survey_json,
    records_from_frame,
    survey_to_ddf,
)

IMPORTED_AT = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _survey_row(**overrides: str) -> dict[str, str]:
    row = {
        "level": "Senior",
        "position": "Backend Developer",
        "tech_stack": "Go, Docker",
        "experience": "5 - 7 Yıl",
        "gender": "",
        "company": "Acme",
        "company_size": "51 - 250 Kişi",
        "work_type": "Remote",
        "city": "İstanbul",
        "currency": "₺ - Türk Lirası",
        "salary": "80.001 - 90.000",
        "raise_period": "2",
    }
    row.update(overrides)
    return row


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Go, Docker", ["Go", "Docker"]),
        ("go, DOCKER", ["Go", "Docker"]),
        ("Go, Go, Docker", ["Go", "Docker"]),
        ("Python ve Django", ["Python", "Django"]),
        ("Reactjs ile frontend", ["React"]),
        ("JavaScript | Html | Css", ["JavaScript | Html | Css"]),
        ("Diğer", []),
        ("", []),
        (None, []),
    ],
)
def test_parse_tech_stack(text: str | None, expected: list[str]) -> None:
    assert parse_tech_stack(text) == expected


def test_short_names_only_match_whole_words() -> None:
    # "go" and "r" appear inside "cargo rental" but are not standalone words.
    assert parse_tech_stack("cargo rental") == []


@pytest.mark.parametrize(
    "text, expected",
    [
        ("30.001 - 40.000", (30_001, 40_000)),
        ("  5.000 - 10.000 ", (5_000, 10_000)),
        ("100.000+", (100_000, None)),
    ],
)
def test_parse_salary_range(text: str, expected: tuple[int, int | None]) -> None:
    assert parse_salary_range(text) == expected


@pytest.mark.parametrize("text", ["", "cok", "30.000", "abc+", "10x - 20.000"])
def test_parse_salary_range_rejects_malformed(text: str) -> None:
    with pytest.raises(ImportFormatError):
        parse_salary_range(text)


@pytest.mark.parametrize(
    "text, code",
    [
        ("₺ - Türk Lirası", "TRY"),
        ("$ - Dolar", "USD"),
        ("€ - Euro", "EUR"),
        ("£ - Sterlin", "GBP"),
        ("", "TRY"),
    ],
)
def test_extract_currency_code(text: str, code: str) -> None:
    assert extract_currency_code(text) == code


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Remote", "Remote"),
        ("Hibrit (Ofis + Remote)", HYBRID_WORK_TYPE),
        ("Remote ve hibrit", HYBRID_WORK_TYPE),
        ("Ofis", "Ofis"),
        ("Saha", "Saha"),
    ],
)
def test_normalize_work_type(text: str, expected: str) -> None:
    assert normalize_work_type(text) == expected


def test_normalize_row() -> None:
    doc = normalize_row(_survey_row(), IMPORTED_AT)

    assert doc["tech_stack"] == ["Go", "Docker"]
    assert (doc["salary_min"], doc["salary_max"]) == (80_001, 90_000)
    assert doc["currency"] == "TRY"
    assert doc["raise_period"] == 2
    assert doc["start_time"] == doc["created_at"] == IMPORTED_AT
    assert doc["raises"] == []
    assert len(doc["entry_id"]) == 32
    assert "gender" not in doc


def test_normalize_row_ids_are_unique() -> None:
    first = normalize_row(_survey_row(), IMPORTED_AT)
    second = normalize_row(_survey_row(), IMPORTED_AT)
    assert first["entry_id"] != second["entry_id"]


def test_normalize_row_defaults_raise_period() -> None:
    assert normalize_row(_survey_row(raise_period=""), IMPORTED_AT)["raise_period"] == 1


def test_normalize_row_rejects_bad_raise_period() -> None:
    with pytest.raises(ImportFormatError, match="raise period"):
        normalize_row(_survey_row(raise_period="yearly"), IMPORTED_AT)


def test_normalize_survey_ddf_skips_bad_rows() -> None:
    pdf = pd.DataFrame(
        [
            _survey_row(),
            _survey_row(salary="not a range"),
            _survey_row(salary="100.000+", currency="$ - Dolar", tech_stack=""),
        ],
        columns=SURVEY_COLUMNS,
    )
    ddf = normalize_survey_ddf(survey_to_ddf(pdf, rows_per_partition=1), IMPORTED_AT)
    out = ddf.compute()

    assert len(out) == 2
    records, bad = records_from_frame(out)
    assert bad == 0
    assert [r.currency for r in records] == ["TRY", "USD"]
    assert records[1].salary_max is None
    assert records[1].tech_stack == []


def test_records_from_frame_counts_invalid_rows() -> None:
    good = normalize_row(_survey_row(), IMPORTED_AT)
    invalid = normalize_row(_survey_row(), IMPORTED_AT)
    invalid["salary_min"] = 0

    records, bad = records_from_frame(pd.DataFrame([good, invalid]))

    assert bad == 1
    assert [r.entry_id for r in records] == [good["entry_id"]]


def test_read_survey_json(tmp_path: Path) -> None:
    path = tmp_path / "survey.json"
    rows = [{"level": "Junior", "salary": "10.000 - 20.000"}, _survey_row()]
    path.write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")

    pdf = read_survey_json(path)

    assert list(pdf.columns) == SURVEY_COLUMNS
    assert len(pdf) == 2
    assert pdf.loc[0, "tech_stack"] == ""
    assert pdf.loc[1, "city"] == "İstanbul"


def test_read_survey_json_rejects_non_array(tmp_path: Path) -> None:
    path = tmp_path / "survey.json"
    path.write_text(json.dumps({"rows": []}), encoding="utf-8")
    with pytest.raises(ImportFormatError):
        read_survey_json(path)


def test_analyze_tech_stacks() -> None:
    pdf = pd.DataFrame({"tech_stack": ["Go, Docker", "go", "Diğer", ""]})

    report = analyze_tech_stacks(pdf, top=5)

    assert report.total_entries == 4
    assert report.valid == [("Go", 2), ("Docker", 1)]
    assert report.invalid == [("Diğer", 1)]
    text = report.render()
    assert "Total entries: 4" in text
    assert " 1. Go" in text
    assert text.endswith("=== END ANALYSIS ===")
