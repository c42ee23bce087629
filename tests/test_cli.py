from __future__ import annotations

import json
from pathlib import Path

import pytest

from salary_analytics import cli
from salary_analytics.cli import build_parser, cmd_analytics, cmd_import, main
from salary_analytics.store import FrameRecordStore


@pytest.fixture
def survey_file(tmp_path: Path) -> Path:
    rows = [
        {
            "level": "Senior",
            "position": "Backend Developer",
            "tech_stack": "Go, Docker",
            "company": "Acme",
            "work_type": "Remote",
            "city": "İstanbul",
            "currency": "$ - Dolar",
            "salary": "100.000+",
        },
        {
            "level": "Senior",
            "position": "Frontend Developer",
            "tech_stack": "React",
            "work_type": "Ofis",
            "city": "Ankara",
            "currency": "$ - Dolar",
            "salary": "50.001 - 60.000",
        },
        {
            "level": "Junior",
            "position": "Backend Developer",
            "tech_stack": "Go",
            "currency": "₺ - Türk Lirası",
            "salary": "30.001 - 40.000",
        },
        {"level": "Junior", "position": "QA", "salary": "bilmiyorum"},
    ]
    path = tmp_path / "survey.json"
    path.write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")
    return path


def test_parser_dispatch() -> None:
    args = build_parser().parse_args(["analytics", "--level", "Senior", "--currency", "USD"])
    assert args.func is cmd_analytics
    assert (args.level, args.role, args.currency, args.from_file) == ("Senior", "", "USD", None)

    args = build_parser().parse_args(["import", "survey.json"])
    assert args.func is cmd_import
    assert args.top == 20


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_analytics_from_file(survey_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["analytics", "--currency", "USD", "--from-file", str(survey_file)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["totalEntries"] == 2
    assert payload["averageSalary"] == 75_000.5
    assert payload["averageSalaryByRole"] == {"Backend Developer": 100_000, "Frontend Developer": 50_001}
    assert [p["name"] for p in payload["topPayingTechs"]] == ["Docker", "Go", "React"]
    assert payload["salaryRanges"][0]["name"] == "Under $50K"


def test_roles_and_levels_from_file(survey_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["roles", "--from-file", str(survey_file)])
    assert json.loads(capsys.readouterr().out) == ["Backend Developer", "Frontend Developer"]

    main(["levels", "--from-file", str(survey_file)])
    assert json.loads(capsys.readouterr().out) == ["Junior", "Senior"]


def test_career_from_file(survey_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["career", "--from-file", str(survey_file)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["jobChanges"]["percentageWithIncrease"] == 0.0
    assert payload["raises"]["medianTimeBetweenRaises"] == 0


def test_analyze_tech(survey_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["analyze-tech", str(survey_file), "--top", "2"])

    out = capsys.readouterr().out
    assert "Total entries: 4" in out
    assert " 1. Go" in out
    assert "React" not in out


def test_mongo_client_is_closed_after_query(
    survey_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    closed: list[bool] = []

    class ClosingStore(FrameRecordStore):
        def close(self) -> None:
            closed.append(True)

    frame_store = cli._frame_store_from_file(survey_file)
    monkeypatch.setattr(
        cli.MongoRecordStore, "from_settings", classmethod(lambda cls, settings: ClosingStore(frame_store.frame))
    )

    main(["roles"])

    assert json.loads(capsys.readouterr().out) == ["Backend Developer", "Frontend Developer"]
    assert closed == [True]
